"""
Exception hierarchy for ledlink.

All exceptions inherit from LedLinkError. The hierarchy keeps the three
failure families apart so a caller can tell them apart with a single
except clause each:

1. TransportError - the device is unreachable or the byte stream failed
2. ProtocolError - the device replied, but the reply was malformed
3. InvalidAddressError - the endpoint could not be used, nothing was sent
"""

from __future__ import annotations


class LedLinkError(Exception):
    """
    Base exception for all ledlink errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all ledlink errors with a single except clause.
    """

    pass


class TransportError(LedLinkError):
    """
    Transport-level error.

    Raised for failures of the underlying byte stream:
    - Connection refused, reset or unreachable
    - Read or write failures
    - End of stream in the middle of a response
    """

    pass


class ConnectError(TransportError):
    """
    The transport could not be established.

    Raised when the TCP handshake fails (refused, unreachable host,
    name resolution failure).
    """

    def __init__(
        self,
        message: str = "Connection failed",
        *,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        super().__init__(message)
        self.host = host
        self.port = port

    def __str__(self) -> str:
        base = super().__str__()
        if self.host is not None and self.port is not None:
            return f"{base} ({self.host}:{self.port})"
        return base


class TimeoutError(TransportError):  # noqa: A001 - intentionally shadows builtin
    """
    Communication timeout.

    Raised when connecting or receiving takes longer than the configured
    timeout.
    """

    def __init__(
        self,
        message: str = "Communication timeout",
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds is not None:
            return f"{base} (after {self.timeout_seconds:.1f}s)"
        return base


class UnexpectedEofError(TransportError):
    """
    The stream ended before a complete response arrived.

    Attributes:
        expected: Number of bytes the read required.
        partial: Bytes received before the stream ended.
    """

    def __init__(
        self,
        message: str = "Connection closed before the full response was received",
        *,
        expected: int | None = None,
        partial: bytes = b"",
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.partial = partial

    def __str__(self) -> str:
        base = super().__str__()
        if self.expected is not None:
            return f"{base} (expected {self.expected} bytes, got {len(self.partial)})"
        return base


class ShortWriteError(TransportError):
    """
    The transport accepted fewer bytes than were requested.

    The protocol has no way to resume a partial request, so this is fatal
    for the command that hit it.
    """

    def __init__(self, expected: int, written: int) -> None:
        self.expected = expected
        self.written = written
        super().__init__(f"Short write: expected {expected} bytes, wrote {written}")


class ConnectionClosedError(TransportError):
    """Raised when an operation is attempted on a closed connection."""

    pass


class ProtocolError(LedLinkError):
    """
    Protocol-level error.

    Raised when the device answered with a correctly sized message whose
    content violates the protocol.
    """

    pass


class UnexpectedAckError(ProtocolError):
    """
    Acknowledgement mismatch.

    Raised when the fixed-position header byte(s) of a response are not the
    expected acknowledgement. This indicates a desynchronized stream or a
    non-conforming device.
    """

    def __init__(
        self,
        message: str = "Got no ACK from peer",
        *,
        expected: bytes | None = None,
        received: bytes | None = None,
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.received = received

    def __str__(self) -> str:
        base = super().__str__()
        if self.expected is not None and self.received is not None:
            return f"{base} (expected {self.expected.hex()}, got {self.received.hex()})"
        return base


class InvalidAddressError(LedLinkError, ValueError):
    """
    The caller-supplied address or port cannot be used.

    Detected before any I/O is attempted, e.g. a port that is not a number
    or is outside 1-65535.
    """

    def __init__(
        self,
        message: str,
        *,
        host: str | None = None,
        port: str | int | None = None,
    ) -> None:
        super().__init__(message)
        self.host = host
        self.port = port


class SessionStateError(LedLinkError):
    """
    Session event not valid in the current state.

    Raised by ControlSession when, for example, toggle() is called while
    disconnected.
    """

    pass
