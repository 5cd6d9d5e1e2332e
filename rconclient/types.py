"""Data classes and protocol constants used in the RCON client module."""

from dataclasses import dataclass
from enum import IntEnum

DEFAULT_PORT = 25575

# request id (4) + packet type (4) + 2 null bytes (2)
PACKET_METADATA_SIZE = 10
# length (4) + request id (4) + packet type (4)
HEADER_SIZE = 12

REQUEST_PAYLOAD_MAX_LENGTH = 1446
RESPONSE_PAYLOAD_MAX_LENGTH = 4096

BAD_AUTH_REQUEST_ID = -1

# What the server answers to a DUMMY_REQUEST (100 == 0x64)
TERMINATION_PAYLOAD = b"Unknown request 64"


class RCONPacketType(IntEnum):
    """Types for an RCON TCP packet.

    Defined in the `Minecraft Wiki RCON documentation <https://minecraft.wiki/w/RCON#Packets>`_.

    AUTH_RESPONSE and COMMAND_REQUEST share a value, so the direction of the
    packet decides its meaning.

    :cvar COMMAND_RESPONSE: Response to a command, possibly one fragment of it
    :cvar AUTH_RESPONSE: Response to an authentication request
    :cvar COMMAND_REQUEST: Standard command packet
    :cvar AUTH_REQUEST: Authentication packet
    :cvar DUMMY_REQUEST: Client-only request used to detect the end of
        multi-packet responses
    """

    COMMAND_RESPONSE = 0
    AUTH_RESPONSE = 2
    COMMAND_REQUEST = 2
    AUTH_REQUEST = 3
    DUMMY_REQUEST = 100


@dataclass(frozen=True)
class RCONPacket:
    """A single RCON packet as held in memory.

    The payload never contains the NUL terminator; ``length`` is always
    derived from it.

    :param request_id: Signed 32-bit id echoed by the server
    :param packet_type: The packet type, usually a RCONPacketType
    :param payload: Body of the packet
    """

    request_id: int
    packet_type: int
    payload: bytes = b""

    @property
    def length(self) -> int:
        """Byte count of everything after the length field."""
        return len(self.payload) + PACKET_METADATA_SIZE

    def __str__(self) -> str:
        return (
            f"Length: {self.length}, RequestId: {self.request_id}, "
            f"Type: {int(self.packet_type)}, Payload: {self.payload!r}"
        )
