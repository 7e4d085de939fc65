"""
Headless control session.

ControlSession is the state machine a user interface drives: it holds the
address form, the connection once established, and the last LED state,
and it turns connection results into something a view can render.

    DISCONNECTED --connect ok--> CONNECTED
    DISCONNECTED --connect error--> CONNECTION_FAILED
    CONNECTION_FAILED --retry--> DISCONNECTED
    CONNECTED --transport error--> CONNECTION_FAILED
    CONNECTED --disconnect--> DISCONNECTED

Every event is checked against the current state; an event that is not
valid there raises SessionStateError instead of being ignored.

Example:
    >>> session = ControlSession()
    >>> session.set_address("192.168.4.1")
    >>> session.set_port("1234")
    >>> await session.connect()
    >>> await session.toggle()
    <DeviceState.ON: 'on'>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Awaitable, Callable, TypeVar

from ledlink.connection import Connection
from ledlink.exceptions import (
    InvalidAddressError,
    SessionStateError,
    TransportError,
    UnexpectedAckError,
)
from ledlink.models.endpoint import ConnectionSettings, Endpoint
from ledlink.protocol.constants import DeviceState, ProtocolConstants

logger = logging.getLogger(__name__)

Connector = Callable[[Endpoint, ConnectionSettings], Awaitable[Connection]]

S = TypeVar("S")


class SessionState(Enum):
    """Session states."""

    DISCONNECTED = auto()
    CONNECTION_FAILED = auto()
    CONNECTED = auto()


@dataclass
class Disconnected:
    """Address form being edited."""

    address: str = ""
    port: str = str(ProtocolConstants.DEFAULT_PORT)
    connecting: bool = False


@dataclass(frozen=True)
class ConnectionFailed:
    """Connecting (or a connected command) failed."""

    address: str
    port: str
    reason: str


@dataclass
class Connected:
    """Live connection and the last state the device reported."""

    connection: Connection
    address: str
    port: str
    led_state: DeviceState = DeviceState.OFF
    protocol_error: str | None = None


SessionData = Disconnected | ConnectionFailed | Connected

_KINDS: dict[type, SessionState] = {
    Disconnected: SessionState.DISCONNECTED,
    ConnectionFailed: SessionState.CONNECTION_FAILED,
    Connected: SessionState.CONNECTED,
}


class ControlSession:
    """
    State machine behind an LED control UI.

    Attributes:
        state: Current SessionState.
        data: Data of the current state (Disconnected, ConnectionFailed or
            Connected).
    """

    def __init__(
        self,
        settings: ConnectionSettings | None = None,
        connector: Connector | None = None,
    ) -> None:
        """
        Args:
            settings: Settings for every connection the session opens.
            connector: Coroutine function opening a Connection to an
                endpoint. Defaults to a TCP connection.
        """
        self._settings = settings or ConnectionSettings()
        self._connector = connector or Connection.connect_endpoint
        self._data: SessionData = Disconnected()

    @property
    def state(self) -> SessionState:
        """Get the current session state."""
        return _KINDS[type(self._data)]

    @property
    def data(self) -> SessionData:
        """Get the data of the current state."""
        return self._data

    @property
    def led_state(self) -> DeviceState | None:
        """Get the last known LED state, or None when not connected."""
        if isinstance(self._data, Connected):
            return self._data.led_state
        return None

    def set_address(self, address: str) -> None:
        """Edit the address field."""
        self._expect_form("set address").address = address

    def set_port(self, port: str) -> None:
        """Edit the port field."""
        self._expect_form("set port").port = port

    async def connect(self) -> None:
        """
        Connect using the address form.

        An unusable address moves the session to CONNECTION_FAILED without
        any I/O. A transport failure does the same with its reason. The
        form cannot be edited while the connect runs.

        Raises:
            SessionStateError: If not DISCONNECTED, or a connect is already
                in progress.
        """
        form = self._expect(Disconnected, "connect")
        if form.connecting:
            raise SessionStateError("Cannot connect: a connect is already in progress")

        address, port = form.address, form.port
        try:
            endpoint = Endpoint.parse(address, port)
        except InvalidAddressError as e:
            self._fail(address, port, str(e))
            return

        form.connecting = True
        try:
            connection = await self._connector(endpoint, self._settings)
        except TransportError as e:
            self._fail(address, port, str(e))
            return
        finally:
            form.connecting = False

        self._transition(Connected(connection, address, port))

    def retry(self) -> None:
        """Leave CONNECTION_FAILED for a fresh address form."""
        self._expect(ConnectionFailed, "retry")
        self._transition(Disconnected())

    async def toggle(self) -> DeviceState:
        """
        Toggle the LED.

        On success the new state is recorded. A malformed reply is recorded
        as `protocol_error` and re-raised; the session stays connected. A
        transport failure moves the session to CONNECTION_FAILED and is
        re-raised.

        Returns:
            The new LED state.

        Raises:
            SessionStateError: If not CONNECTED.
            UnexpectedAckError: If the device reply was malformed.
            TransportError: If the device became unreachable.
        """
        current = self._expect(Connected, "toggle")
        try:
            led_state = await current.connection.send_command()
        except UnexpectedAckError as e:
            if self._data is current:
                current.protocol_error = str(e)
            raise
        except TransportError as e:
            if self._data is current:
                self._fail(current.address, current.port, str(e))
            raise

        # A disconnect may have happened while the command was in flight
        if self._data is current:
            current.led_state = led_state
            current.protocol_error = None
        return led_state

    async def disconnect(self) -> None:
        """Close the connection and go back to the address form."""
        current = self._expect(Connected, "disconnect")
        self._transition(Disconnected(current.address, current.port))
        await current.connection.close()

    def status_text(self) -> str:
        """Render the current state as a line of text."""
        data = self._data
        if isinstance(data, Connected):
            if data.protocol_error is not None:
                return f"Connected. Protocol error: {data.protocol_error}"
            return f"Connected. LED: {data.led_state}"
        if isinstance(data, ConnectionFailed):
            return f"Connection to `{data.address}:{data.port}` failed. Reason: {data.reason}"
        if data.connecting:
            return f"Connecting to {data.address}:{data.port}..."
        return "Disconnected."

    def _expect(self, kind: type[S], event: str) -> S:
        if not isinstance(self._data, kind):
            raise SessionStateError(f"Cannot {event}: session is {self.state.name}")
        return self._data

    def _expect_form(self, event: str) -> Disconnected:
        form = self._expect(Disconnected, event)
        if form.connecting:
            raise SessionStateError(f"Cannot {event}: a connect is in progress")
        return form

    def _fail(self, address: str, port: str, reason: str) -> None:
        logger.warning("Connection to %s:%s failed: %s", address, port, reason)
        self._transition(ConnectionFailed(address, port, reason))

    def _transition(self, data: SessionData) -> None:
        logger.debug("Session %s -> %s", self.state.name, _KINDS[type(data)].name)
        self._data = data

    def __repr__(self) -> str:
        return f"ControlSession(state={self.state.name})"
