"""
LED protocol opcodes and constants.

The wire format is fixed and single-purpose: the client sends one opcode
byte and the device answers with a fixed-length acknowledgement carrying
the new actuator state. There is no framing beyond the fixed lengths.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Final


class CommandCode(IntEnum):
    """
    Single-byte opcodes used on the wire.

    - TOGGLE is the only request.
    - ACKNOWLEDGE opens every response.
    - STATUS tags the payload of an extended response as a status report.
    """

    TOGGLE = 0xAA
    """Toggle the actuator and report its new state."""

    ACKNOWLEDGE = 0x06
    """Command recognized; first byte of every response."""

    STATUS = 0xBB
    """Status report tag; second byte of an extended response."""


class DeviceState(Enum):
    """Last state reported by the device for its actuator."""

    ON = "on"
    OFF = "off"

    def __str__(self) -> str:
        return self.value


class ResponseFormat(Enum):
    """
    Response layouts understood by the decoder.

    The two layouts are successive revisions of the firmware, not
    negotiated alternatives: a connection is configured for exactly one.
    """

    BASELINE = "baseline"
    """ACKNOWLEDGE, state."""

    EXTENDED = "extended"
    """ACKNOWLEDGE, STATUS, state."""

    @property
    def header(self) -> bytes:
        """Fixed bytes that must precede the state byte."""
        if self is ResponseFormat.EXTENDED:
            return bytes([CommandCode.ACKNOWLEDGE, CommandCode.STATUS])
        return bytes([CommandCode.ACKNOWLEDGE])

    @property
    def length(self) -> int:
        """Total response length in bytes, state byte included."""
        return len(self.header) + 1


class ProtocolConstants:
    """
    Protocol constants.

    Contains message sizes and timing defaults used throughout the
    implementation.
    """

    # ===== Message Sizes =====

    REQUEST_LENGTH: Final[int] = 1
    """Every request is a single opcode byte."""

    STATE_OFF: Final[int] = 0x00
    """State byte reported for an unlit actuator. Any other value means on."""

    # ===== Endpoint Defaults =====

    DEFAULT_PORT: Final[int] = 1234
    """Port the device firmware listens on out of the box."""

    MIN_PORT: Final[int] = 1
    MAX_PORT: Final[int] = 65535

    # ===== Timing Constants (in seconds) =====

    DEFAULT_CONNECT_TIMEOUT: Final[float] = 5.0
    """Default TCP handshake timeout in seconds."""

    DEFAULT_RECEIVE_TIMEOUT: Final[float] = 5.0
    """Default response timeout in seconds."""
