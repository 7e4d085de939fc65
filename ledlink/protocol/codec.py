"""
Request encoding and response decoding.

Pure functions only: no I/O and no state. The caller is responsible for
reading exactly ``response_format.length`` bytes before decoding; a short
read is a transport failure and never reaches this module.

Example:
    >>> encode_toggle()
    b'\\xaa'
    >>> decode_response(b"\\x06\\x01")
    <DeviceState.ON: 'on'>
"""

from __future__ import annotations

from ledlink.exceptions import UnexpectedAckError
from ledlink.protocol.constants import (
    CommandCode,
    DeviceState,
    ProtocolConstants,
    ResponseFormat,
)

_TOGGLE_REQUEST = bytes([CommandCode.TOGGLE])


def encode_toggle() -> bytes:
    """
    Build the toggle request.

    Returns:
        The single-byte request ``b"\\xAA"``.
    """
    return _TOGGLE_REQUEST


def decode_state(value: int) -> DeviceState:
    """
    Interpret a state byte.

    Zero is off; every other value is on. The firmware only sends 0 or 1,
    but other values are accepted rather than rejected.

    Args:
        value: State byte (0-255).

    Returns:
        The decoded DeviceState.
    """
    if value == ProtocolConstants.STATE_OFF:
        return DeviceState.OFF
    return DeviceState.ON


def decode_response(
    data: bytes | bytearray | memoryview,
    response_format: ResponseFormat = ResponseFormat.BASELINE,
) -> DeviceState:
    """
    Validate a complete response and extract the reported state.

    Args:
        data: Exactly ``response_format.length`` bytes read from the device.
        response_format: Layout the device is expected to answer with.

    Returns:
        The state reported by the device.

    Raises:
        ValueError: If ``data`` is not exactly the response length.
        UnexpectedAckError: If the header bytes are not the expected
            acknowledgement.

    Example:
        >>> decode_response(b"\\x06\\xbb\\x00", ResponseFormat.EXTENDED)
        <DeviceState.OFF: 'off'>
    """
    data = bytes(data)
    if len(data) != response_format.length:
        raise ValueError(
            f"{response_format.name} response must be {response_format.length} bytes, "
            f"got {len(data)}"
        )

    expected = response_format.header
    received = data[: len(expected)]
    if received != expected:
        raise UnexpectedAckError(expected=expected, received=received)

    return decode_state(data[-1])
