"""
Abstract transport interface for the LED protocol.

A transport is an ordered, reliable byte stream to one device. It is
responsible for:
- Opening/closing the underlying connection
- Writing raw bytes and reporting how many were accepted
- Reading an exact number of bytes, with an optional timeout

Implementations:
- AsyncTcpTransport: asyncio TCP stream
- MockTransport / ScriptedMockTransport: for testing without hardware
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Abstract base class for device transports.

    Transports support the async context manager protocol:

        async with AsyncTcpTransport("192.168.4.1", 1234) as transport:
            await transport.write(b"\\xaa")
            response = await transport.read(2)

    Attributes:
        is_open: Whether the transport is currently open.
        peer_name: Identifier of the remote end (e.g. "192.168.4.1:1234").
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport is currently open.

        Returns:
            True if connected and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def peer_name(self) -> str:
        """Identifier of the remote end, for logs and messages."""
        ...

    @abstractmethod
    async def open(self) -> None:
        """
        Open the transport.

        Raises:
            ConnectError: If the remote end cannot be reached.
            TimeoutError: If the handshake does not complete in time.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the transport.

        Safe to call multiple times (idempotent).
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> int:
        """
        Write data to the transport.

        Args:
            data: Bytes to send.

        Returns:
            Number of bytes the transport accepted.

        Raises:
            TransportError: If the transport is not open or the write fails.
        """
        ...

    @abstractmethod
    async def read(self, size: int, timeout: float | None = None) -> bytes:
        """
        Read an exact number of bytes.

        Args:
            size: Number of bytes to read.
            timeout: Seconds to wait for all bytes. None waits indefinitely.

        Returns:
            Exactly `size` bytes.

        Raises:
            UnexpectedEofError: If the stream ends before `size` bytes arrive.
            TimeoutError: If the timeout expires first.
            TransportError: If the transport is not open or the read fails.
        """
        ...

    async def __aenter__(self) -> AbstractTransport:
        """Async context manager entry - opens the transport."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the transport."""
        await self.close()
