"""RCON communication client.

An :class:`RCONSession` owns one authenticated TCP connection. The
philosophy is to surface every failure as an :class:`RCONClientError` and
leave reconnects/retries to the caller: after an I/O or framing error the
session is broken and a new one has to be created with :func:`connect`.

Sessions support single-coroutine access only. Responses carry nothing but
a request id to tell them apart, so callers must not issue commands
concurrently on one session.

Multi-packet responses: the server splits long output over several packets
without marking the last one. After each command a DUMMY_REQUEST is sent;
the server answers it with "Unknown request 64" after every fragment of the
real answer, which marks the end of the response.

Packet format reference: https://minecraft.wiki/w/RCON#Packet_format
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Self

from .packet import read_packet, write_packet
from .rcon_exceptions import (
    RCONClientAuthenticationError,
    RCONClientConnectError,
    RCONClientError,
    RCONClientFramingError,
    RCONClientIOError,
    RCONClientPayloadTooLargeError,
    RCONClientTimeoutError,
)
from .types import (
    BAD_AUTH_REQUEST_ID,
    DEFAULT_PORT,
    REQUEST_PAYLOAD_MAX_LENGTH,
    TERMINATION_PAYLOAD,
    RCONPacket,
    RCONPacketType,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)


@dataclass
class RCONSessionConfig:
    """Configuration for an RCONSession.

    :param password: The RCON password
    :param host: The RCON host (default: localhost)
    :param port: The RCON port (default: 25575)
    :param connect_timeout: Seconds to wait for the TCP connection;
        0 or None waits indefinitely
    :param read_timeout: Seconds to wait for each response packet;
        None waits indefinitely
    """

    password: str
    host: str = "localhost"
    port: int = DEFAULT_PORT
    connect_timeout: float | None = None
    read_timeout: float | None = None

    @property
    def address(self) -> str:
        """The server address in ``host:port`` form."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` address.

    IPv6 hosts must be bracketed, e.g. ``[::1]:25575``. An empty host means
    localhost.

    :param address: The address to split
    :return: A tuple of (host, port)

    :raises RCONClientConnectError: if the address has no valid port
    """
    host, sep, port_str = address.rpartition(":")
    if not sep:
        msg = f"missing port in address {address!r}"
        raise RCONClientConnectError("parse address", msg)

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        msg = f"IPv6 host must be bracketed in address {address!r}"
        raise RCONClientConnectError("parse address", msg)

    try:
        port = int(port_str)
    except ValueError as e:
        msg = f"invalid port in address {address!r}"
        raise RCONClientConnectError("parse address", msg) from e

    if not 0 < port < 65536:  # noqa: PLR2004
        msg = f"port out of range in address {address!r}"
        raise RCONClientConnectError("parse address", msg)

    return host or "localhost", port


def _encode_text(op: str, text: str) -> bytes:
    """Encode a request payload as UTF-8.

    :raises RCONClientFramingError: if the text is not encodable, e.g. it
        contains lone surrogates
    """
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        msg = f"payload is not valid UTF-8 text: {e.reason}"
        raise RCONClientFramingError(op, msg) from e


def _new_request_id() -> int:
    """Pick a random non-negative signed 32-bit request id.

    Ids are not unique across calls; collisions are tolerated.
    """
    return secrets.randbelow(1 << 31)


class RCONSession:
    """An authenticated connection to an RCON server.

    Use :meth:`connect` (or the module level :func:`connect`) to create one.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        config: RCONSessionConfig,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        """Wrap an open connection.

        :param reader: The StreamReader for the socket
        :param writer: The StreamWriter for the socket
        :param config: The RCONSessionConfig the connection was opened with
        :param logger: Logger to report to (default: this module's logger)
        """
        self._reader = reader
        self._writer = writer
        self._address = config.address
        self._read_timeout = config.read_timeout
        self._logger = logger or LOGGER
        self._broken = False
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the session can no longer be used."""
        return self._closed or self._broken

    @property
    def address(self) -> str:
        """The address of the server this session is connected to."""
        return self._address

    def _abort(self) -> None:
        """Mark the session unusable and drop the transport."""
        self._broken = True
        self._writer.close()

    @contextmanager
    def _transport_errors(self, op: str) -> Iterator[None]:
        """Break the session on transport failures and raise client errors.

        :param op: The operation in progress, for error messages
        """
        try:
            yield
        except (RCONClientFramingError, RCONClientTimeoutError):
            self._abort()
            raise
        except OSError as e:
            self._abort()
            raise RCONClientIOError(op, str(e) or type(e).__name__) from e
        except asyncio.CancelledError:
            self._abort()
            raise

    async def _read(self, op: str) -> RCONPacket:
        try:
            async with asyncio.timeout(self._read_timeout) as deadline:
                packet = await read_packet(self._reader)
        except TimeoutError as e:
            if not deadline.expired():
                raise
            msg = f"no response from {self._address} within {self._read_timeout}s"
            raise RCONClientTimeoutError(op, msg) from e
        self._logger.debug("Received packet: %s", packet)
        return packet

    async def _authenticate(self, password: str) -> None:
        """Perform the authentication handshake.

        :param password: The RCON password

        :raises RCONClientAuthenticationError: if the password is rejected
        :raises RCONClientIOError: if the socket fails
        :raises RCONClientFramingError: if the response is malformed
        """
        request_id = _new_request_id()
        request = RCONPacket(
            request_id,
            RCONPacketType.AUTH_REQUEST,
            _encode_text("authenticate", password),
        )

        with self._transport_errors("authenticate"):
            await write_packet(self._writer, request)
            response = await self._read("authenticate")

        if response.request_id != request_id:
            if response.request_id == BAD_AUTH_REQUEST_ID:
                msg = "incorrect RCON password"
            else:
                msg = (
                    f"response request id {response.request_id} "
                    f"does not match {request_id}"
                )
            raise RCONClientAuthenticationError("authenticate", msg)

        self._logger.info("Authenticated with RCON server at %s", self._address)

    async def command(self, command: str) -> str:
        """Send a command to the RCON server and return the full response.

        Fragments of a long response are joined in arrival order.

        :param command: The RCON command to send
        :return: The response from the RCON server

        :raises RCONClientPayloadTooLargeError: if the command is longer than
            REQUEST_PAYLOAD_MAX_LENGTH bytes; nothing is sent
        :raises RCONClientIOError: if the session is closed or the socket fails
        :raises RCONClientTimeoutError: if the read timeout elapses
        :raises RCONClientFramingError: if the command cannot be encoded (the
            session stays usable) or a response is malformed
        """
        if self.closed:
            msg = f"session to {self._address} is closed"
            raise RCONClientIOError("command", msg)

        payload = _encode_text("command", command)
        if len(payload) > REQUEST_PAYLOAD_MAX_LENGTH:
            msg = (
                f"request payload is {len(payload)} bytes, "
                f"over {REQUEST_PAYLOAD_MAX_LENGTH}"
            )
            raise RCONClientPayloadTooLargeError("command", msg)

        request_id = _new_request_id()
        self._logger.debug("Sending command (request id %d): %s", request_id, command)

        response_parts: list[bytes] = []
        with self._transport_errors("command"):
            await write_packet(
                self._writer,
                RCONPacket(request_id, RCONPacketType.COMMAND_REQUEST, payload),
                RCONPacket(request_id, RCONPacketType.DUMMY_REQUEST),
            )

            while True:
                packet = await self._read("command")

                if packet.request_id != request_id:
                    self._logger.debug(
                        "Ignoring packet with request id %d, expected %d",
                        packet.request_id,
                        request_id,
                    )
                    continue

                if packet.payload == TERMINATION_PAYLOAD:
                    break

                response_parts.append(packet.payload)

        return b"".join(response_parts).decode("utf-8", errors="replace")

    async def close(self) -> None:
        """Disconnect from the RCON server and close the socket (best effort)."""
        if self._closed:
            return
        self._closed = True

        try:
            self._writer.close()
            await self._writer.wait_closed()
        except Exception:
            # Ignore errors when closing the socket
            if self._broken:
                self._logger.debug("Error while closing RCON socket", exc_info=True)
            else:
                self._logger.exception("Error while closing RCON socket")

        self._logger.info("Closed RCON session to %s", self._address)

    @classmethod
    async def connect(
        cls,
        config: RCONSessionConfig,
        *,
        logger: logging.Logger | None = None,
    ) -> Self:
        """Connect to the RCON server and authenticate.

        This should be the go-to way to create an instance of this class; a
        session is never handed out before authentication succeeds.

        :param config: The RCONSessionConfig to connect with
        :param logger: Logger for the new session (default: this module's logger)
        :return: An authenticated session

        :raises RCONClientConnectError: if the TCP connection fails or times out
        :raises RCONClientAuthenticationError: if the password is incorrect
        :raises RCONClientIOError: if the socket fails during authentication
        :raises RCONClientFramingError: if the auth response is malformed
        """
        connect_timeout = config.connect_timeout or None
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(config.host, config.port),
                connect_timeout,
            )
        except (OSError, UnicodeError) as e:
            msg = f"{config.address}: {str(e) or type(e).__name__}"
            raise RCONClientConnectError("connect", msg) from e

        session = cls(reader, writer, config, logger=logger)
        try:
            await session._authenticate(config.password)  # noqa: SLF001
        except (RCONClientError, asyncio.CancelledError):
            await session.close()
            raise

        return session


async def connect(
    address: str,
    password: str,
    timeout: float = 0,
    *,
    read_timeout: float | None = None,
    logger: logging.Logger | None = None,
) -> RCONSession:
    """Connect to ``address`` and authenticate with ``password``.

    :param address: The server address in ``host:port`` form
    :param password: The RCON password
    :param timeout: Seconds to wait for the TCP connection; 0 waits
        indefinitely
    :param read_timeout: Seconds to wait for each response packet; None
        waits indefinitely
    :param logger: Logger for the new session (default: this module's logger)
    :return: An authenticated session

    :raises RCONClientConnectError: if the address is invalid or the TCP
        connection fails
    :raises RCONClientAuthenticationError: if the password is incorrect
    """
    host, port = parse_address(address)
    config = RCONSessionConfig(
        password=password,
        host=host,
        port=port,
        connect_timeout=timeout,
        read_timeout=read_timeout,
    )
    return await RCONSession.connect(config, logger=logger)
