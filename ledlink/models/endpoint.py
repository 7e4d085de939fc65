"""
Pydantic models for connection targets and settings.

Both models are frozen: an endpoint or a settings object never changes
after it has been handed to a connection.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ledlink.exceptions import InvalidAddressError
from ledlink.protocol.constants import ProtocolConstants, ResponseFormat


class Endpoint(BaseModel):
    """
    TCP endpoint of a device.

    The host is passed to the resolver as-is; only the port range is
    checked here.

    Example:
        >>> ep = Endpoint.parse("192.168.4.1", "1234")
        >>> str(ep)
        '192.168.4.1:1234'
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1, description="Host name or IP address")
    port: int = Field(
        strict=True,
        ge=ProtocolConstants.MIN_PORT,
        le=ProtocolConstants.MAX_PORT,
        description="TCP port",
    )

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank hosts."""
        v = v.strip()
        if not v:
            raise ValueError("Host must not be blank")
        return v

    @classmethod
    def create(cls, host: str, port: int) -> Endpoint:
        """
        Build an endpoint, reporting bad input as InvalidAddressError.

        Raises:
            InvalidAddressError: If the host is blank or the port is out
                of range.
        """
        try:
            return cls(host=host, port=port)
        except ValidationError as e:
            reasons = "; ".join(err["msg"] for err in e.errors())
            raise InvalidAddressError(
                f"Invalid address: {reasons}", host=host, port=port
            ) from e

    @classmethod
    def parse(cls, host: str, port: str) -> Endpoint:
        """
        Build an endpoint from the raw text of an address form.

        Args:
            host: Host name or IP address text.
            port: Port number text.

        Raises:
            InvalidAddressError: If the port is not a number or the
                endpoint is otherwise unusable.
        """
        text = port.strip()
        # Plain ASCII digits only; int() would also take "1_234" or "\uff11"
        if not (text.isascii() and text.isdigit()):
            raise InvalidAddressError("Invalid port", host=host, port=port)
        return cls.create(host, int(text))

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


class ConnectionSettings(BaseModel):
    """
    Per-connection configuration.

    Attributes:
        response_format: Response layout the device firmware speaks.
        connect_timeout: Seconds to wait for the TCP handshake.
        receive_timeout: Seconds to wait for a response, or None to wait
            indefinitely.
    """

    model_config = ConfigDict(frozen=True)

    response_format: ResponseFormat = ResponseFormat.BASELINE
    connect_timeout: float = Field(
        default=ProtocolConstants.DEFAULT_CONNECT_TIMEOUT,
        gt=0,
    )
    receive_timeout: float | None = Field(
        default=ProtocolConstants.DEFAULT_RECEIVE_TIMEOUT,
        gt=0,
    )
