"""Custom exceptions for the RCON client module.

Every failure surfaced by a session is an :class:`RCONClientError`. None of
them are retried internally; after any of them except
:class:`RCONClientPayloadTooLargeError` the session is unusable and the caller
decides whether to connect again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import RCONPacket


class RCONClientError(Exception):
    """Base class for errors raised by the RCON client.

    :param op: The operation that was attempted, e.g. ``"connect"``
    :param message: Human readable description of the failure
    """

    def __init__(self, op: str, message: str) -> None:
        super().__init__(f"failed to {op}: {message}")
        self.op = op


class RCONClientConnectError(RCONClientError):
    """Raised when the TCP connection to the server cannot be established."""


class RCONClientAuthenticationError(RCONClientError):
    """Raised when the server rejects the RCON password."""


class RCONClientPayloadTooLargeError(RCONClientError):
    """Raised when a command does not fit in a single request packet."""


class RCONClientFramingError(RCONClientError):
    """Raised when bytes on the wire do not form a valid packet.

    :param op: The operation that was attempted
    :param message: Human readable description of the failure
    :param packet: The offending packet, if it could be built
    :param data: The raw bytes that were read or given, if any
    """

    def __init__(
        self,
        op: str,
        message: str,
        packet: RCONPacket | None = None,
        data: bytes = b"",
    ) -> None:
        if packet is not None:
            message = f"{message} (packet {{{packet}}})"
        super().__init__(op, message)
        self.packet = packet
        self.data = data


class RCONClientIOError(RCONClientError):
    """Raised when the transport fails mid-session or the session is closed."""


class RCONClientTimeoutError(RCONClientIOError):
    """Raised when the server does not answer within the read timeout."""


class RCONClientMissingPassword(Exception):
    """Raised when the RCON password is missing from environment variables."""
