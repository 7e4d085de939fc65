"""Shared test helpers: an in-process emulation of the device firmware."""

from __future__ import annotations

import asyncio
import socket

import pytest

from ledlink.protocol.constants import CommandCode


class FakeDevice:
    """
    TCP server behaving like the LED firmware.

    Every TOGGLE byte flips the LED and is answered with an ACK and the
    new level (with the STATUS tag in extended mode). Other bytes are
    ignored. With `silent=True` the device reads one command and closes
    the connection without answering; with `mute=True` it keeps the
    connection open and never answers.
    """

    def __init__(
        self, *, extended: bool = False, silent: bool = False, mute: bool = False
    ) -> None:
        self.extended = extended
        self.silent = silent
        self.mute = mute
        self.level = False
        self.received = bytearray()
        self._server: asyncio.AbstractServer | None = None

    @property
    def port(self) -> int:
        return self._server.sockets[0].getsockname()[1]

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            while True:
                command = await reader.read(1)
                if not command:
                    break
                self.received.extend(command)
                if self.silent:
                    break
                if self.mute or command[0] != CommandCode.TOGGLE:
                    continue
                self.level = not self.level
                reply = bytes([CommandCode.ACKNOWLEDGE])
                if self.extended:
                    reply += bytes([CommandCode.STATUS])
                reply += bytes([int(self.level)])
                writer.write(reply)
                await writer.drain()
        finally:
            writer.close()

    async def __aenter__(self) -> FakeDevice:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self._server.close()
        await self._server.wait_closed()


@pytest.fixture
def closed_port() -> int:
    """A localhost port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def fake_device():
    """Factory for FakeDevice servers; use as `async with fake_device() as device`."""
    return FakeDevice
