"""Async Source RCON client for Minecraft servers."""

from .connection import RCONSession, RCONSessionConfig, connect
from .rcon_exceptions import (
    RCONClientAuthenticationError,
    RCONClientConnectError,
    RCONClientError,
    RCONClientFramingError,
    RCONClientIOError,
    RCONClientMissingPassword,
    RCONClientPayloadTooLargeError,
    RCONClientTimeoutError,
)
from .types import (
    REQUEST_PAYLOAD_MAX_LENGTH,
    RESPONSE_PAYLOAD_MAX_LENGTH,
    RCONPacket,
    RCONPacketType,
)

__all__ = [
    "REQUEST_PAYLOAD_MAX_LENGTH",
    "RESPONSE_PAYLOAD_MAX_LENGTH",
    "RCONClientAuthenticationError",
    "RCONClientConnectError",
    "RCONClientError",
    "RCONClientFramingError",
    "RCONClientIOError",
    "RCONClientMissingPassword",
    "RCONClientPayloadTooLargeError",
    "RCONClientTimeoutError",
    "RCONPacket",
    "RCONPacketType",
    "RCONSession",
    "RCONSessionConfig",
    "connect",
]
