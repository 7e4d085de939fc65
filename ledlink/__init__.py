"""
ledlink - Python library for toggling an LED on a networked device.

The device listens on a TCP port and answers a single-byte toggle command
with an acknowledgement carrying the new LED state.

Example:
    >>> from ledlink import connect
    >>>
    >>> async def main():
    ...     async with await connect("192.168.4.1", 1234) as conn:
    ...         state = await conn.send_command()
    ...         print(f"LED is {state}")
"""

from ledlink.connection import Connection, ConnectionState, connect, send_command
from ledlink.exceptions import (
    ConnectError,
    ConnectionClosedError,
    InvalidAddressError,
    LedLinkError,
    ProtocolError,
    SessionStateError,
    ShortWriteError,
    TimeoutError,
    TransportError,
    UnexpectedAckError,
    UnexpectedEofError,
)
from ledlink.models.endpoint import ConnectionSettings, Endpoint
from ledlink.protocol.constants import DeviceState, ResponseFormat
from ledlink.session import ControlSession, SessionState
from ledlink.transport import AbstractTransport, AsyncTcpTransport

__version__ = "0.1.0"
__all__ = [
    # Connection
    "Connection",
    "ConnectionState",
    "connect",
    "send_command",
    # Session
    "ControlSession",
    "SessionState",
    # Models
    "DeviceState",
    "ResponseFormat",
    "Endpoint",
    "ConnectionSettings",
    # Exceptions
    "LedLinkError",
    "TransportError",
    "ConnectError",
    "TimeoutError",
    "UnexpectedEofError",
    "ShortWriteError",
    "ConnectionClosedError",
    "ProtocolError",
    "UnexpectedAckError",
    "InvalidAddressError",
    "SessionStateError",
    # Transport
    "AbstractTransport",
    "AsyncTcpTransport",
    # Version
    "__version__",
]
