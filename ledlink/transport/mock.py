"""
Mock transport for testing.

This module provides a mock transport that lets the connection be tested
without a device. Responses are queued up front or generated by a
callback, and everything written is recorded for verification.

Unlike a real socket, the mock treats an empty response queue as a peer
that has closed the stream: reading past the queued data raises
UnexpectedEofError.

Example:
    >>> from ledlink.transport import MockTransport
    >>> from ledlink import Connection
    >>>
    >>> mock = MockTransport()
    >>> mock.add_response(b"\\x06\\x01")
    >>>
    >>> async with await Connection.open(mock) as conn:
    ...     state = await conn.send_command()
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable

from ledlink.exceptions import ConnectionClosedError, TransportError, UnexpectedEofError
from ledlink.transport.abc import AbstractTransport


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without hardware.

    Attributes:
        written_data: List of all bytes written to the transport.
        events: Ordered trace of ("write" | "read", bytes) operations.

    Example:
        >>> mock = MockTransport()
        >>> mock.add_response(b"\\x06\\x00")
        >>>
        >>> async with mock:
        ...     await mock.write(b"\\xaa")
        ...     response = await mock.read(2)
        ...     assert response == b"\\x06\\x00"
        ...     assert mock.written_data == [b"\\xaa"]
    """

    def __init__(
        self,
        peer_name: str = "mock://device",
        *,
        io_delay: float = 0.0,
        write_limit: int | None = None,
    ) -> None:
        """
        Initialize the mock transport.

        Args:
            peer_name: Identifier for the mock transport.
            io_delay: Seconds every write and read suspends for. Even at 0
                each operation yields to the event loop once.
            write_limit: Maximum bytes accepted per write, to simulate
                short writes. None accepts everything.
        """
        self._peer_name = peer_name
        self._io_delay = io_delay
        self._write_limit = write_limit
        self._is_open = False
        self._responses: deque[bytes] = deque()
        self._written_data: list[bytes] = []
        self._events: list[tuple[str, bytes]] = []
        self._read_buffer = bytearray()
        self._response_callback: Callable[[bytes], bytes | None] | None = None
        self._failures: dict[str, BaseException] = {}
        self.open_count = 0
        self.close_count = 0

    @property
    def is_open(self) -> bool:
        """Check if the mock transport is open."""
        return self._is_open

    @property
    def peer_name(self) -> str:
        """Get the mock peer name."""
        return self._peer_name

    @property
    def written_data(self) -> list[bytes]:
        """Get all data written to the transport."""
        return self._written_data.copy()

    @property
    def last_written(self) -> bytes | None:
        """Get the most recently written data."""
        return self._written_data[-1] if self._written_data else None

    @property
    def events(self) -> list[tuple[str, bytes]]:
        """Get the ordered trace of write and read operations."""
        return self._events.copy()

    def add_response(self, response: bytes) -> None:
        """
        Add a response to the queue.

        Responses are returned in FIFO order on read operations.

        Args:
            response: Bytes to return on the next read.
        """
        self._responses.append(response)

    def add_responses(self, *responses: bytes) -> None:
        """
        Add multiple responses to the queue.

        Args:
            *responses: Multiple byte responses to add.
        """
        for response in responses:
            self._responses.append(response)

    def set_response_callback(
        self,
        callback: Callable[[bytes], bytes | None] | None,
    ) -> None:
        """
        Set a callback to dynamically generate responses.

        The callback receives the written data and returns the bytes the
        device answers with, or None to fall back to the queue.

        Args:
            callback: Function that takes written bytes and returns response.
        """
        self._response_callback = callback

    def fail_next(self, operation: str, error: BaseException) -> None:
        """
        Make the next write or read raise `error`.

        Args:
            operation: "write" or "read".
            error: Exception to raise.
        """
        if operation not in ("write", "read"):
            raise ValueError(f"Unknown operation: {operation!r}")
        self._failures[operation] = error

    def clear(self) -> None:
        """Clear all written data and pending responses."""
        self._written_data.clear()
        self._events.clear()
        self._responses.clear()
        self._read_buffer.clear()

    async def open(self) -> None:
        """Open the mock transport."""
        if self._is_open:
            raise TransportError("Mock transport already open")
        self._is_open = True
        self.open_count += 1

    async def close(self) -> None:
        """Close the mock transport."""
        if self._is_open:
            self.close_count += 1
        self._is_open = False

    async def write(self, data: bytes) -> int:
        """
        Write data to the mock transport.

        Records the accepted bytes and optionally triggers the response
        callback.

        Args:
            data: Bytes to write.

        Returns:
            Number of bytes accepted (limited by write_limit).

        Raises:
            ConnectionClosedError: If transport is not open.
        """
        self._check_open()
        await asyncio.sleep(self._io_delay)
        self._raise_pending("write")

        accepted = bytes(data)
        if self._write_limit is not None:
            accepted = accepted[: self._write_limit]

        self._written_data.append(accepted)
        self._events.append(("write", accepted))

        # Check for callback-generated response
        if self._response_callback:
            response = self._response_callback(accepted)
            if response is not None:
                self._read_buffer.extend(response)

        return len(accepted)

    async def read(self, size: int, timeout: float | None = None) -> bytes:
        """
        Read exact number of bytes.

        Args:
            size: Number of bytes to read.
            timeout: Read timeout (ignored in mock).

        Returns:
            Exactly size bytes.

        Raises:
            UnexpectedEofError: If not enough data is queued.
            ConnectionClosedError: If transport is not open.
        """
        self._check_open()
        await asyncio.sleep(self._io_delay)
        self._raise_pending("read")

        # Load responses into buffer until we have enough
        while len(self._read_buffer) < size and self._responses:
            self._read_buffer.extend(self._responses.popleft())

        if len(self._read_buffer) < size:
            partial = bytes(self._read_buffer)
            self._read_buffer.clear()
            self._events.append(("read", partial))
            raise UnexpectedEofError(expected=size, partial=partial)

        result = bytes(self._read_buffer[:size])
        del self._read_buffer[:size]
        self._events.append(("read", result))
        return result

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """
        Assert that specific data was written.

        Args:
            expected: Expected bytes.
            index: Index in written_data list (-1 for last).

        Raises:
            AssertionError: If data doesn't match.
        """
        if not self._written_data:
            raise AssertionError("No data written to mock transport")

        actual = self._written_data[index]
        if actual != expected:
            raise AssertionError(f"Written data mismatch: expected {expected!r}, got {actual!r}")

    def assert_write_count(self, expected: int) -> None:
        """
        Assert number of write operations.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self._written_data)
        if actual != expected:
            raise AssertionError(f"Write count mismatch: expected {expected}, got {actual}")

    def _check_open(self) -> None:
        if not self._is_open:
            raise ConnectionClosedError("Mock transport not open")

    def _raise_pending(self, operation: str) -> None:
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error


class ScriptedMockTransport(MockTransport):
    """
    Mock transport with scripted request/response pairs.

    Each write consumes the next step of the script: the written bytes
    are checked against the expected request and the scripted response
    becomes readable.

    Example:
        >>> mock = ScriptedMockTransport()
        >>> mock.expect(request=b"\\xaa", response=b"\\x06\\x01")
        >>> mock.expect(request=b"\\xaa", response=b"\\x06\\x00")
    """

    def __init__(self, peer_name: str = "mock://scripted", **kwargs) -> None:
        super().__init__(peer_name, **kwargs)
        self._script: list[tuple[bytes | None, bytes]] = []
        self._script_index = 0

    @property
    def remaining_steps(self) -> int:
        """Number of scripted steps not yet consumed."""
        return len(self._script) - self._script_index

    def expect(
        self,
        response: bytes,
        request: bytes | None = None,
    ) -> None:
        """
        Add an expected request/response pair.

        Args:
            response: Response to return. Empty bytes simulate a peer that
                closes without answering.
            request: Expected request (None to match any).
        """
        self._script.append((request, response))

    async def write(self, data: bytes) -> int:
        """Write with script validation."""
        if self._script_index < len(self._script):
            expected_request, _ = self._script[self._script_index]
            if expected_request is not None and bytes(data) != expected_request:
                raise AssertionError(
                    f"Script mismatch at step {self._script_index}: "
                    f"expected {expected_request!r}, got {bytes(data)!r}"
                )

        written = await super().write(data)

        if self._script_index < len(self._script):
            _, response = self._script[self._script_index]
            self._read_buffer.extend(response)
            self._script_index += 1

        return written

    def reset_script(self) -> None:
        """Reset script to beginning."""
        self._script_index = 0
        self._read_buffer.clear()
