"""
Connection to a single LED device.

A Connection owns exactly one transport and runs the toggle command over
it. The protocol carries no request identifiers, so the connection never
lets two commands overlap on the stream:

    IDLE -> send_command() -> IN_FLIGHT -> IDLE
    IN_FLIGHT -> transport failure -> CLOSED
    IDLE -> close() -> CLOSED

Callers that issue send_command() concurrently are queued on a lock held
for the whole request/response cycle. A command that has started is not
cancellable: if the awaiting caller is cancelled, the cycle still runs to
completion (or failure) and the lock is released only then. Owners must
therefore await outstanding commands (or close(), which waits for them)
before discarding a connection.

Example:
    >>> from ledlink import connect
    >>>
    >>> async def main():
    ...     async with await connect("192.168.4.1", 1234) as conn:
    ...         state = await conn.send_command()
    ...         print(f"LED: {state}")
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from typing import TYPE_CHECKING

from ledlink.exceptions import (
    ConnectionClosedError,
    ShortWriteError,
    TransportError,
    UnexpectedAckError,
)
from ledlink.models.endpoint import ConnectionSettings, Endpoint
from ledlink.protocol.codec import decode_response, encode_toggle
from ledlink.protocol.constants import DeviceState, ProtocolConstants
from ledlink.transport.tcp_async import AsyncTcpTransport

if TYPE_CHECKING:
    from ledlink.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection states."""

    IDLE = auto()
    """No command in flight."""

    IN_FLIGHT = auto()
    """A command has been written and its response is being read."""

    CLOSED = auto()
    """Transport released. Terminal."""


class Connection:
    """
    A live connection to one device.

    Attributes:
        state: Current connection state.
        last_state: Device state reported by the last successful command.
        transport: The underlying transport.
        settings: Settings the connection was opened with.
    """

    def __init__(
        self,
        transport: AbstractTransport,
        settings: ConnectionSettings | None = None,
    ) -> None:
        """
        Wrap an already open transport.

        Prefer connect() or open(), which take care of opening it.

        Args:
            transport: Open transport; the connection becomes its only user.
            settings: Response format and timeouts. Defaults apply if None.
        """
        self._transport = transport
        self._settings = settings or ConnectionSettings()
        self._lock = asyncio.Lock()
        self._state = ConnectionState.IDLE
        self._last_state: DeviceState | None = None

    @classmethod
    async def open(
        cls,
        transport: AbstractTransport,
        settings: ConnectionSettings | None = None,
    ) -> Connection:
        """
        Open `transport` if needed and wrap it in a Connection.

        Raises:
            TransportError: If the transport cannot be opened.
        """
        if not transport.is_open:
            logger.debug("Opening transport %s", transport.peer_name)
            await transport.open()
        logger.info("Connected to %s", transport.peer_name)
        return cls(transport, settings)

    @classmethod
    async def connect_endpoint(
        cls,
        endpoint: Endpoint,
        settings: ConnectionSettings | None = None,
    ) -> Connection:
        """
        Open a TCP connection to a validated endpoint.

        Raises:
            ConnectError: If the endpoint refuses or cannot be reached.
            TimeoutError: If the handshake exceeds the connect timeout.
        """
        settings = settings or ConnectionSettings()
        transport = AsyncTcpTransport(
            endpoint.host,
            endpoint.port,
            connect_timeout=settings.connect_timeout,
        )
        logger.info("Connecting to %s", endpoint)
        try:
            return await cls.open(transport, settings)
        except TransportError as e:
            logger.error("Connection to %s failed: %s", endpoint, e)
            raise

    @classmethod
    async def connect(
        cls,
        host: str,
        port: int,
        settings: ConnectionSettings | None = None,
    ) -> Connection:
        """
        Open a TCP connection to `host`:`port`.

        Args:
            host: Host name or IP address of the device.
            port: TCP port (1-65535).
            settings: Response format and timeouts.

        Returns:
            An idle Connection.

        Raises:
            InvalidAddressError: If the endpoint is unusable; no I/O happens.
            ConnectError: If the endpoint refuses or cannot be reached.
            TimeoutError: If the handshake exceeds the connect timeout.
        """
        return await cls.connect_endpoint(Endpoint.create(host, port), settings)

    @property
    def state(self) -> ConnectionState:
        """Get the current connection state."""
        return self._state

    @property
    def is_open(self) -> bool:
        """Check if the connection can still carry commands."""
        return self._state != ConnectionState.CLOSED and self._transport.is_open

    @property
    def last_state(self) -> DeviceState | None:
        """Get the device state reported by the last successful command."""
        return self._last_state

    @property
    def transport(self) -> AbstractTransport:
        """Get the underlying transport."""
        return self._transport

    @property
    def settings(self) -> ConnectionSettings:
        """Get the settings the connection was opened with."""
        return self._settings

    async def send_command(self) -> DeviceState:
        """
        Toggle the actuator and return the state the device reports.

        Waits for any command already in flight on this connection to
        finish first. Cancelling the caller does not cancel a started
        command; it completes in the background.

        Returns:
            The new state reported by the device.

        Raises:
            ConnectionClosedError: If the connection is closed.
            ShortWriteError: If the request was not fully written.
            UnexpectedEofError: If the device closed the stream mid-response.
            TimeoutError: If the response did not arrive in time.
            TransportError: For any other I/O failure.
            UnexpectedAckError: If the response header is not an ACK.
        """
        # Waiting for the lock is cancellable; nothing has been sent yet.
        await self._lock.acquire()
        cycle = asyncio.ensure_future(self._run_locked())
        try:
            return await asyncio.shield(cycle)
        except asyncio.CancelledError:
            if not cycle.done():
                logger.warning(
                    "Caller cancelled while a command is in flight on %s; "
                    "letting it complete",
                    self._transport.peer_name,
                )
                cycle.add_done_callback(self._log_abandoned)
            raise

    async def close(self) -> None:
        """
        Close the connection.

        Waits for an in-flight command to finish. Safe to call multiple times.
        """
        async with self._lock:
            await self._release()

    async def _run_locked(self) -> DeviceState:
        """Run one command and release the lock acquired by send_command()."""
        try:
            if not self.is_open:
                raise ConnectionClosedError(
                    f"Connection to {self._transport.peer_name} is closed"
                )

            self._state = ConnectionState.IN_FLIGHT
            try:
                device_state = await self._exchange()
            except TransportError as e:
                logger.error("Command on %s failed: %s", self._transport.peer_name, e)
                await self._release()
                raise
            finally:
                if self._state == ConnectionState.IN_FLIGHT:
                    self._state = ConnectionState.IDLE

            self._last_state = device_state
            return device_state
        finally:
            self._lock.release()

    async def _exchange(self) -> DeviceState:
        """Run one request/response cycle. The lock must be held."""
        request = encode_toggle()
        written = await self._transport.write(request)
        if written != ProtocolConstants.REQUEST_LENGTH:
            raise ShortWriteError(ProtocolConstants.REQUEST_LENGTH, written)
        logger.debug("Sent %s to %s", request.hex(), self._transport.peer_name)

        response_format = self._settings.response_format
        response = await self._transport.read(
            response_format.length,
            timeout=self._settings.receive_timeout,
        )
        logger.debug("Received %s from %s", response.hex(), self._transport.peer_name)

        try:
            device_state = decode_response(response, response_format)
        except UnexpectedAckError as e:
            logger.warning("Bad response from %s: %s", self._transport.peer_name, e)
            raise

        logger.debug("Device %s reports LED %s", self._transport.peer_name, device_state)
        return device_state

    async def _release(self) -> None:
        if self._state == ConnectionState.CLOSED:
            return
        self._state = ConnectionState.CLOSED
        logger.info("Closing connection to %s", self._transport.peer_name)
        await self._transport.close()

    def _log_abandoned(self, cycle: asyncio.Future) -> None:
        if cycle.cancelled():
            return
        error = cycle.exception()
        if error is not None:
            logger.warning(
                "Abandoned command on %s failed: %s", self._transport.peer_name, error
            )
        else:
            logger.debug(
                "Abandoned command on %s completed: %s",
                self._transport.peer_name,
                cycle.result(),
            )

    async def __aenter__(self) -> Connection:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - close the connection."""
        await self.close()

    def __repr__(self) -> str:
        return f"Connection({self._transport.peer_name}, state={self._state.name})"


async def connect(
    address: str,
    port: int,
    settings: ConnectionSettings | None = None,
) -> Connection:
    """
    Open a connection to the device at `address`:`port`.

    See Connection.connect().
    """
    return await Connection.connect(address, port, settings)


async def send_command(connection: Connection) -> DeviceState:
    """
    Toggle the actuator over `connection` and return its new state.

    See Connection.send_command().
    """
    return await connection.send_command()
