"""
Async TCP transport using asyncio streams.

This is the transport used against real devices. The device firmware
listens on a plain TCP socket and speaks the fixed-length protocol
directly on it; there is no framing or TLS layer.

Example:
    >>> transport = AsyncTcpTransport("192.168.4.1", 1234)
    >>> async with transport:
    ...     await transport.write(b"\\xaa")
    ...     response = await transport.read(2, timeout=5.0)
"""

from __future__ import annotations

import asyncio
import logging

from ledlink.exceptions import (
    ConnectError,
    ConnectionClosedError,
    TimeoutError,
    TransportError,
    UnexpectedEofError,
)
from ledlink.protocol.constants import ProtocolConstants
from ledlink.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)


class AsyncTcpTransport(AbstractTransport):
    """
    Async TCP transport.

    Attributes:
        host: Remote host name or IP address.
        port: Remote TCP port.
        is_open: Whether the stream is currently open.
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float | None = ProtocolConstants.DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        """
        Initialize the transport. No I/O happens until open().

        Args:
            host: Remote host name or IP address.
            port: Remote TCP port.
            connect_timeout: Handshake timeout in seconds, None for no limit.
        """
        self._host = host
        self._port = port
        self._connect_timeout = connect_timeout
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def is_open(self) -> bool:
        """Check if the stream is currently open."""
        return (
            self._writer is not None
            and not self._writer.is_closing()
            and self._reader is not None
        )

    @property
    def peer_name(self) -> str:
        """Get the remote endpoint as host:port."""
        return f"{self._host}:{self._port}"

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    async def open(self) -> None:
        """
        Open the TCP connection.

        Raises:
            ConnectError: If the connection is refused or the host is
                unreachable or cannot be resolved.
            TimeoutError: If the handshake exceeds the connect timeout.
        """
        if self.is_open:
            return

        logger.debug("Opening TCP connection to %s", self.peer_name)
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._connect_timeout,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"Timeout connecting to {self.peer_name}",
                timeout_seconds=self._connect_timeout,
            ) from None
        except OSError as e:
            raise ConnectError(
                f"Failed to connect: {e}", host=self._host, port=self._port
            ) from e

    async def close(self) -> None:
        """
        Close the TCP connection.

        Safe to call multiple times.
        """
        writer = self._writer
        self._reader = None
        self._writer = None
        if writer is None:
            return

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            # The peer may already have reset the connection
            logger.debug("Error while closing %s: %s", self.peer_name, e)

    async def write(self, data: bytes) -> int:
        """
        Write data and wait for it to be flushed to the socket.

        Args:
            data: Bytes to transmit.

        Returns:
            Number of bytes written; asyncio streams accept the whole buffer.

        Raises:
            ConnectionClosedError: If the transport is not open.
            TransportError: If the write fails.
        """
        if not self.is_open:
            raise ConnectionClosedError(f"Connection to {self.peer_name} is not open")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as e:
            raise TransportError(f"Write to {self.peer_name} failed: {e}") from e
        return len(data)

    async def read(self, size: int, timeout: float | None = None) -> bytes:
        """
        Read exactly `size` bytes.

        Args:
            size: Number of bytes to read.
            timeout: Read timeout in seconds. None waits indefinitely.

        Returns:
            Exactly `size` bytes.

        Raises:
            ConnectionClosedError: If the transport is not open.
            UnexpectedEofError: If the peer closes the stream first.
            TimeoutError: If the timeout expires first.
            TransportError: If the read fails.
        """
        if not self.is_open:
            raise ConnectionClosedError(f"Connection to {self.peer_name} is not open")

        if size <= 0:
            return b""

        try:
            return await asyncio.wait_for(
                self._reader.readexactly(size),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"Timeout waiting for {size} bytes from {self.peer_name}",
                timeout_seconds=timeout,
            ) from None
        except asyncio.IncompleteReadError as e:
            raise UnexpectedEofError(expected=size, partial=e.partial) from e
        except OSError as e:
            raise TransportError(f"Read from {self.peer_name} failed: {e}") from e

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"AsyncTcpTransport({self._host!r}, {self._port}, {status})"
