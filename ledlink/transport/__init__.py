"""
Transport layer for the LED protocol.

This package provides the byte-stream implementations a Connection can
run over.

Available transports:
- AsyncTcpTransport: asyncio TCP stream to a real device
- MockTransport: Mock transport for testing without hardware
- ScriptedMockTransport: Mock transport with request/response script

Example:
    >>> from ledlink.transport import AsyncTcpTransport
    >>> async with AsyncTcpTransport("192.168.4.1", 1234) as transport:
    ...     await transport.write(b"\\xaa")
    ...     response = await transport.read(2)

Testing Example:
    >>> from ledlink.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.add_response(b"\\x06\\x01")  # ACK, on
"""

from ledlink.transport.abc import AbstractTransport
from ledlink.transport.mock import MockTransport, ScriptedMockTransport
from ledlink.transport.tcp_async import AsyncTcpTransport

__all__ = [
    "AbstractTransport",
    "AsyncTcpTransport",
    "MockTransport",
    "ScriptedMockTransport",
]
