"""Pytest configuration file for setting up test environment."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio

# Add the project root to Python path so tests can import rconclient
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

from rconclient.packet import encode_packet, read_packet  # noqa: E402
from rconclient.rcon_exceptions import RCONClientFramingError  # noqa: E402
from rconclient.types import (  # noqa: E402
    BAD_AUTH_REQUEST_ID,
    TERMINATION_PAYLOAD,
    RCONPacket,
    RCONPacketType,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

SERVER_PASSWORD = "test_password"  # noqa: S105


class FakeRCONServer:
    """In-process RCON server that behaves like a Minecraft server.

    :param password: The password clients must authenticate with
    """

    def __init__(self, password: str = SERVER_PASSWORD) -> None:
        self.password = password
        self.responses: dict[str, list[bytes]] = {}
        self.auth_response_id: int | None = None
        self.stray_packets: list[RCONPacket] = []
        self.answer_dummy = True
        self.received: list[RCONPacket] = []
        self.port = 0
        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []

    @property
    def address(self) -> str:
        """Address of the listening socket."""
        return f"127.0.0.1:{self.port}"

    async def start(self) -> None:
        """Listen on a free local port."""
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        """Drop every client and stop listening."""
        for writer in self._writers:
            writer.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    def _replies(self, packet: RCONPacket) -> Iterator[RCONPacket]:
        request_id = packet.request_id

        if packet.packet_type == RCONPacketType.AUTH_REQUEST:
            if self.auth_response_id is not None:
                request_id = self.auth_response_id
            elif packet.payload.decode() != self.password:
                request_id = BAD_AUTH_REQUEST_ID
            yield RCONPacket(request_id, RCONPacketType.AUTH_RESPONSE)

        elif packet.packet_type == RCONPacketType.COMMAND_REQUEST:
            yield from self.stray_packets
            chunks = self.responses.get(packet.payload.decode(), [b""])
            for chunk in chunks:
                yield RCONPacket(request_id, RCONPacketType.COMMAND_RESPONSE, chunk)

        elif packet.packet_type == RCONPacketType.DUMMY_REQUEST:
            if self.answer_dummy:
                yield RCONPacket(
                    request_id, RCONPacketType.COMMAND_RESPONSE, TERMINATION_PAYLOAD
                )

    async def _handle(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        self._writers.append(writer)
        try:
            while True:
                packet = await read_packet(reader)
                self.received.append(packet)
                for reply in self._replies(packet):
                    writer.write(encode_packet(reply))
                await writer.drain()
        except (ConnectionError, RCONClientFramingError):
            pass
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Undo logging.basicConfig calls made by the code under test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest_asyncio.fixture
async def rcon_server() -> AsyncIterator[FakeRCONServer]:
    """Provide a running FakeRCONServer."""
    server = FakeRCONServer()
    await server.start()
    yield server
    await server.stop()
