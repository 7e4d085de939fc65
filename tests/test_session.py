"""Tests for ControlSession."""

import asyncio

import pytest

from ledlink import Connection, ControlSession, DeviceState, SessionState
from ledlink.exceptions import (
    ConnectError,
    SessionStateError,
    TransportError,
    UnexpectedAckError,
)
from ledlink.session import Connected, ConnectionFailed, Disconnected
from ledlink.transport.mock import MockTransport


class FakeConnector:
    """Connector that opens Connections over a MockTransport."""

    def __init__(self, transport=None, error=None):
        self.transport = transport or MockTransport()
        self.error = error
        self.endpoints = []

    async def __call__(self, endpoint, settings):
        self.endpoints.append(endpoint)
        if self.error is not None:
            raise self.error
        return await Connection.open(self.transport, settings)


class BlockingConnector(FakeConnector):
    """FakeConnector that waits for `release` before connecting."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.release = asyncio.Event()

    async def __call__(self, endpoint, settings):
        await self.release.wait()
        return await super().__call__(endpoint, settings)


def make_session(connector, address="192.168.4.1", port="1234"):
    session = ControlSession(connector=connector)
    session.set_address(address)
    session.set_port(port)
    return session


class TestSessionConnect:
    """Tests for connecting a session."""

    def test_initial_state(self):
        """Test session starts disconnected with the default port filled in."""
        session = ControlSession()
        assert session.state == SessionState.DISCONNECTED
        assert session.data == Disconnected()
        assert session.data.address == ""
        assert session.data.port == "1234"
        assert session.led_state is None
        assert session.status_text() == "Disconnected."

    @pytest.mark.asyncio
    async def test_connect_success(self):
        """Test a successful connect moves to CONNECTED with the LED off."""
        connector = FakeConnector()
        session = make_session(connector)

        await session.connect()

        assert session.state == SessionState.CONNECTED
        assert isinstance(session.data, Connected)
        assert session.led_state == DeviceState.OFF
        assert str(connector.endpoints[0]) == "192.168.4.1:1234"
        assert session.status_text() == "Connected. LED: off"

    @pytest.mark.asyncio
    async def test_invalid_port_fails_without_io(self):
        """Test a non-numeric port moves to CONNECTION_FAILED without connecting."""
        connector = FakeConnector()
        session = make_session(connector, port="12ab")

        await session.connect()

        assert session.state == SessionState.CONNECTION_FAILED
        assert session.data == ConnectionFailed("192.168.4.1", "12ab", "Invalid port")
        assert connector.endpoints == []
        assert "Reason: Invalid port" in session.status_text()

    @pytest.mark.asyncio
    async def test_transport_error_fails(self):
        """Test a refused connection moves to CONNECTION_FAILED with its reason."""
        connector = FakeConnector(error=ConnectError("Failed to connect: refused"))
        session = make_session(connector)

        await session.connect()

        assert session.state == SessionState.CONNECTION_FAILED
        assert "refused" in session.data.reason
        assert session.status_text().startswith("Connection to `192.168.4.1:1234` failed.")

    @pytest.mark.asyncio
    async def test_retry_resets_form(self):
        """Test retry goes back to an empty address form."""
        session = make_session(FakeConnector(), port="bad")
        await session.connect()

        session.retry()

        assert session.state == SessionState.DISCONNECTED
        assert session.data == Disconnected()


class TestSessionToggle:
    """Tests for toggling through a session."""

    @pytest.mark.asyncio
    async def test_toggle_updates_state(self):
        """Test toggle records the state the device reports."""
        connector = FakeConnector()
        connector.transport.add_responses(b"\x06\x01", b"\x06\x00")
        session = make_session(connector)
        await session.connect()

        assert await session.toggle() == DeviceState.ON
        assert session.led_state == DeviceState.ON
        assert await session.toggle() == DeviceState.OFF
        assert session.status_text() == "Connected. LED: off"

    @pytest.mark.asyncio
    async def test_protocol_error_is_recorded(self):
        """Test a bad ACK is shown as a protocol error and the session stays connected."""
        connector = FakeConnector()
        connector.transport.add_responses(b"\x00\x00", b"\x06\x01")
        session = make_session(connector)
        await session.connect()

        with pytest.raises(UnexpectedAckError):
            await session.toggle()
        assert session.state == SessionState.CONNECTED
        assert session.data.protocol_error is not None
        assert "Protocol error" in session.status_text()

        await session.toggle()
        assert session.data.protocol_error is None
        assert session.led_state == DeviceState.ON

    @pytest.mark.asyncio
    async def test_transport_error_fails_session(self):
        """Test losing the device moves the session to CONNECTION_FAILED."""
        connector = FakeConnector()
        session = make_session(connector)
        await session.connect()

        with pytest.raises(TransportError):
            await session.toggle()

        assert session.state == SessionState.CONNECTION_FAILED
        assert session.data.address == "192.168.4.1"
        assert not connector.transport.is_open

    @pytest.mark.asyncio
    async def test_disconnect(self):
        """Test disconnect closes the connection and keeps the form."""
        connector = FakeConnector()
        session = make_session(connector)
        await session.connect()

        await session.disconnect()

        assert session.state == SessionState.DISCONNECTED
        assert session.data == Disconnected("192.168.4.1", "1234")
        assert not connector.transport.is_open


class TestSessionInvalidEvents:
    """Tests for events that are not valid in the current state."""

    @pytest.mark.asyncio
    async def test_toggle_when_disconnected(self):
        """Test toggle requires a connection."""
        with pytest.raises(SessionStateError) as exc_info:
            await ControlSession().toggle()
        assert "DISCONNECTED" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connect_when_connected(self):
        """Test connecting twice is rejected."""
        session = make_session(FakeConnector())
        await session.connect()
        with pytest.raises(SessionStateError):
            await session.connect()

    @pytest.mark.asyncio
    async def test_edit_form_when_connected(self):
        """Test the address form is only editable while disconnected."""
        session = make_session(FakeConnector())
        await session.connect()
        with pytest.raises(SessionStateError):
            session.set_address("10.0.0.1")
        with pytest.raises(SessionStateError):
            session.set_port("1")

    def test_retry_when_disconnected(self):
        """Test retry is only valid after a failure."""
        with pytest.raises(SessionStateError):
            ControlSession().retry()

    @pytest.mark.asyncio
    async def test_disconnect_when_failed(self):
        """Test disconnect is only valid while connected."""
        session = make_session(FakeConnector(), port="")
        await session.connect()
        with pytest.raises(SessionStateError):
            await session.disconnect()

    def test_repr(self):
        """Test string representation."""
        assert repr(ControlSession()) == "ControlSession(state=DISCONNECTED)"


class TestSessionConnecting:
    """Tests for the session while a connect is running."""

    @pytest.mark.asyncio
    async def test_status_while_connecting(self):
        """Test status text reports the endpoint being dialed."""
        connector = BlockingConnector()
        session = make_session(connector, address="10.0.0.1")

        task = asyncio.create_task(session.connect())
        await asyncio.sleep(0)
        assert session.status_text() == "Connecting to 10.0.0.1:1234..."

        connector.release.set()
        await task
        assert session.state == SessionState.CONNECTED

    @pytest.mark.asyncio
    async def test_second_connect_rejected(self):
        """Test a connect started while another is running is rejected."""
        connector = BlockingConnector()
        session = make_session(connector)

        task = asyncio.create_task(session.connect())
        await asyncio.sleep(0)
        with pytest.raises(SessionStateError) as exc_info:
            await session.connect()
        assert "already in progress" in str(exc_info.value)

        connector.release.set()
        await task
        assert len(connector.endpoints) == 1
        assert session.state == SessionState.CONNECTED

    @pytest.mark.asyncio
    async def test_form_locked_while_connecting(self):
        """Test the form cannot be edited mid-connect and the dialed address is kept."""
        connector = BlockingConnector()
        session = make_session(connector, address="10.0.0.1")

        task = asyncio.create_task(session.connect())
        await asyncio.sleep(0)
        with pytest.raises(SessionStateError):
            session.set_address("other.example")
        with pytest.raises(SessionStateError):
            session.set_port("9999")

        connector.release.set()
        await task
        assert session.data.address == "10.0.0.1"
        assert session.data.port == "1234"
        assert str(connector.endpoints[0]) == "10.0.0.1:1234"

    @pytest.mark.asyncio
    async def test_form_editable_after_failed_connect_returns(self):
        """Test the form unlocks again once a connect has finished."""
        connector = BlockingConnector(error=ConnectError("refused"))
        session = make_session(connector)

        task = asyncio.create_task(session.connect())
        await asyncio.sleep(0)
        connector.release.set()
        await task
        session.retry()

        session.set_address("10.0.0.2")
        assert session.data.address == "10.0.0.2"


class TestSessionOverTcp:
    """Tests for a session using the default TCP connector."""

    @pytest.mark.asyncio
    async def test_round_trip(self, fake_device):
        """Test connect, toggle and disconnect against the fake device."""
        async with fake_device() as device:
            session = ControlSession()
            session.set_address("127.0.0.1")
            session.set_port(str(device.port))

            await session.connect()
            assert session.state == SessionState.CONNECTED

            assert await session.toggle() == DeviceState.ON
            assert await session.toggle() == DeviceState.OFF
            assert session.status_text() == "Connected. LED: off"

            await session.disconnect()
            assert session.state == SessionState.DISCONNECTED
            assert session.data.port == str(device.port)
            assert device.received == bytearray(b"\xaa\xaa")

    @pytest.mark.asyncio
    async def test_refused(self, closed_port):
        """Test a refused TCP connect moves the session to CONNECTION_FAILED."""
        session = ControlSession()
        session.set_address("127.0.0.1")
        session.set_port(str(closed_port))

        await session.connect()

        assert session.state == SessionState.CONNECTION_FAILED
        assert f"127.0.0.1:{closed_port}" in session.status_text()
