"""
Protocol layer for the LED toggle protocol.

This module contains the wire format:
- Opcodes and protocol constants
- Response layouts (baseline and extended)
- Request encoding and response decoding
"""

from ledlink.protocol.codec import decode_response, decode_state, encode_toggle
from ledlink.protocol.constants import (
    CommandCode,
    DeviceState,
    ProtocolConstants,
    ResponseFormat,
)

__all__ = [
    # Constants
    "CommandCode",
    "DeviceState",
    "ProtocolConstants",
    "ResponseFormat",
    # Codec
    "encode_toggle",
    "decode_state",
    "decode_response",
]
