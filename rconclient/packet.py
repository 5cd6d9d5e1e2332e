"""RCON packet encoding and decoding.

Packet format reference: https://minecraft.wiki/w/RCON#Packet_format

All integers are little-endian signed 32-bit::

    int32 length        # request id + type + payload + 2 null bytes
    int32 request id
    int32 type
    byte[] payload
    0x00                # payload terminator
    0x00                # pad
"""

import asyncio
import struct

from .rcon_exceptions import RCONClientFramingError
from .types import HEADER_SIZE, PACKET_METADATA_SIZE, RCONPacket

_HEADER = struct.Struct("<iii")
_TRAILER = b"\x00\x00"


def encode_packet(packet: RCONPacket) -> bytes:
    """Format a packet to be sent to the RCON server.

    :param packet: The packet to encode
    :return: The wire bytes, ``4 + packet.length`` long

    :raises RCONClientFramingError: if a field does not fit in a signed
        32-bit integer
    """
    try:
        header = _HEADER.pack(packet.length, packet.request_id, packet.packet_type)
    except struct.error as e:
        msg = str(e)
        raise RCONClientFramingError("encode", msg, packet=packet) from e

    return header + packet.payload + _TRAILER


def parse_header(data: bytes) -> tuple[int, int, int]:
    """Parse the fixed size header at the start of ``data``.

    :param data: At least HEADER_SIZE bytes
    :return: A tuple of (length, request_id, packet_type)

    :raises RCONClientFramingError: if the header is truncated or declares
        a length too small to hold the metadata
    """
    if len(data) < HEADER_SIZE:
        msg = f"header needs {HEADER_SIZE} bytes, got {len(data)}"
        raise RCONClientFramingError("decode", msg, data=data)

    length, request_id, packet_type = _HEADER.unpack_from(data)
    if length < PACKET_METADATA_SIZE:
        msg = f"declared length {length} is below {PACKET_METADATA_SIZE}"
        raise RCONClientFramingError("decode", msg, data=data)

    return length, request_id, packet_type


def decode_packet(data: bytes) -> RCONPacket:
    """Decode exactly one complete packet.

    :param data: The wire bytes of a single packet
    :return: The decoded packet

    :raises RCONClientFramingError: if ``data`` is not exactly as long as
        the declared length requires
    """
    length, request_id, packet_type = parse_header(data)

    expected = length + 4
    if len(data) != expected:
        msg = f"declared length needs {expected} bytes, got {len(data)}"
        raise RCONClientFramingError("decode", msg, data=data)

    payload = data[HEADER_SIZE : expected - len(_TRAILER)]
    return RCONPacket(request_id=request_id, packet_type=packet_type, payload=payload)


async def read_packet(reader: asyncio.StreamReader) -> RCONPacket:
    """Read a full packet from the stream.

    The header is read first to learn how many bytes follow.

    :param reader: The StreamReader for the RCON socket
    :return: The decoded packet

    :raises RCONClientFramingError: if the stream ends mid-packet or the
        header is invalid
    :raises ConnectionError: if the socket is no longer connected or the
        stream ends between packets
    """
    try:
        header = await reader.readexactly(HEADER_SIZE)
    except asyncio.IncompleteReadError as e:
        if not e.partial:
            msg = "Connection closed by peer"
            raise ConnectionError(msg) from e
        msg = f"stream ended after {len(e.partial)} header bytes"
        raise RCONClientFramingError("read", msg, data=e.partial) from e

    length, _, _ = parse_header(header)

    try:
        rest = await reader.readexactly(length + 4 - HEADER_SIZE)
    except asyncio.IncompleteReadError as e:
        msg = f"stream ended {length + 4 - HEADER_SIZE - len(e.partial)} bytes short"
        raise RCONClientFramingError("read", msg, data=header + e.partial) from e

    return decode_packet(header + rest)


async def write_packet(writer: asyncio.StreamWriter, *packets: RCONPacket) -> None:
    """Write packets back to back and wait for the buffer to drain.

    :param writer: The StreamWriter for the RCON socket
    :param packets: Packets to send, in order

    :raises ConnectionError: if the socket is no longer connected
    """
    writer.write(b"".join(encode_packet(packet) for packet in packets))
    await writer.drain()
