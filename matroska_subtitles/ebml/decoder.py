"""
Push-based EBML stream decoder.

Bytes are fed in arbitrary chunks with `feed()`; `tags()` then yields every
element that is complete in the buffered data:

- Masters listed in ``buffer_tag_ids`` are held back until their whole
  subtree has arrived and are delivered once, children decoded.
- Other known masters are entered: their header is consumed and their
  children stream out one by one. Unknown-size masters (live Segment,
  Cluster) are always entered.
- Known leaves are delivered as soon as their data is complete.
- Unknown element ids are skipped without buffering their data.

A buffered master declaring more than ``max_buffered_size`` bytes raises
EbmlDecodeError as soon as its header is read.
"""

import logging
import struct
from collections.abc import Iterable, Iterator
from typing import Optional

from matroska_subtitles.ebml.tags import KNOWN_TAG_IDS, TAG_TYPES, EbmlTag, EbmlTagId, EbmlType

logger = logging.getLogger(__name__)

# Unknown/indeterminate size sentinel
UNKNOWN_SIZE = -1

# Element IDs are at most 4 bytes, data sizes at most 8
_MAX_ID_LENGTH = 4
_MAX_SIZE_LENGTH = 8


class EbmlDecodeError(ValueError):
    """Raised when the byte stream cannot be decoded as EBML."""


class _Incomplete(Exception):
    """More bytes are needed before the element header can be read."""


# =============================================================================
# Low-level EBML parsing
# =============================================================================


def vint_length(first: int) -> int:
    """Number of bytes in a VINT, from the position of the leading one bit."""
    if first == 0:
        raise EbmlDecodeError("EBML VINT: invalid leading byte 0x00")
    return 9 - first.bit_length()


def read_vint(data: bytes | bytearray, pos: int, max_length: int = _MAX_SIZE_LENGTH) -> tuple[int, int, int]:
    """
    Read a variable-length integer (VINT) from EBML data.

    Returns:
        (raw_value, value_without_marker, new_pos)
        raw_value includes the VINT marker bit (element IDs).
        value_without_marker has the marker bit masked off (element sizes);
        it is UNKNOWN_SIZE when every value bit is set.
    """
    if pos >= len(data):
        raise _Incomplete
    length = vint_length(data[pos])
    if length > max_length:
        raise EbmlDecodeError(f"EBML VINT: {length}-byte value at pos {pos} exceeds {max_length} bytes")
    if pos + length > len(data):
        raise _Incomplete

    raw = 0
    for i in range(length):
        raw = (raw << 8) | data[pos + i]

    value = raw & ~(1 << (7 * length))
    if value == (1 << (7 * length)) - 1:
        value = UNKNOWN_SIZE

    return raw, value, pos + length


def read_element_header(data: bytes | bytearray, pos: int) -> tuple[int, int, int]:
    """
    Read an element ID and its data size.

    Returns:
        (element_id, data_size, data_pos)
    """
    eid, _, pos = read_vint(data, pos, _MAX_ID_LENGTH)
    _, size, pos = read_vint(data, pos, _MAX_SIZE_LENGTH)
    return eid, size, pos


def read_uint(data: bytes) -> int:
    value = 0
    for b in data:
        value = (value << 8) | b
    return value


def read_int(data: bytes) -> int:
    return int.from_bytes(data, "big", signed=True) if data else 0


def read_float(data: bytes) -> float:
    """Read a 0, 4 or 8 byte IEEE float (big-endian)."""
    if len(data) == 0:
        return 0.0
    if len(data) == 4:
        return struct.unpack(">f", data)[0]
    if len(data) == 8:
        return struct.unpack(">d", data)[0]
    raise EbmlDecodeError(f"EBML float must be 4 or 8 bytes, got {len(data)}")


def read_string(data: bytes) -> str:
    """Read a UTF-8 string, stripping null terminators."""
    return data.rstrip(b"\x00").decode("utf-8", errors="replace")


def parse_block(tag: EbmlTag, data: bytes) -> None:
    """
    Parse a Block / SimpleBlock header into the tag.

    The header is the track number (VINT, marker stripped), a signed 16-bit
    big-endian timecode relative to the cluster, and a flags byte. The rest
    of the element is the payload.
    """
    try:
        _, track_number, pos = read_vint(data, 0)
    except _Incomplete:
        raise EbmlDecodeError(f"Block at {tag.position} is too short") from None
    if pos + 3 > len(data):
        raise EbmlDecodeError(f"Block at {tag.position} is too short")

    tag.track = track_number
    tag.value = struct.unpack(">h", data[pos : pos + 2])[0]
    tag.flags = data[pos + 2]
    tag.payload = bytes(data[pos + 3 :])


def decode_element(tag_id: EbmlTagId, data: bytes, position: int, data_offset: int) -> EbmlTag:
    """Build a fully decoded tag (recursively for masters) from its data bytes."""
    tag = EbmlTag(id=tag_id, position=position, size=len(data))
    etype = tag.type

    if etype is EbmlType.MASTER:
        tag.children = list(iter_children(data, data_offset))
    elif etype is EbmlType.UINT:
        tag.data = read_uint(data)
    elif etype is EbmlType.INT:
        tag.data = read_int(data)
    elif etype is EbmlType.FLOAT:
        tag.data = read_float(data)
    elif etype in (EbmlType.STRING, EbmlType.UTF8):
        tag.data = read_string(data)
    elif etype is EbmlType.BLOCK:
        tag.data = data
        parse_block(tag, data)
    else:
        tag.data = data

    return tag


def iter_children(data: bytes, data_offset: int) -> Iterator[EbmlTag]:
    """Decode the children of a fully buffered master element."""
    pos = 0
    while pos < len(data):
        element_start = pos
        try:
            eid, size, pos = read_element_header(data, pos)
        except _Incomplete:
            raise EbmlDecodeError(f"Truncated child element at {data_offset + element_start}") from None
        if size == UNKNOWN_SIZE or pos + size > len(data):
            raise EbmlDecodeError(f"Child element 0x{eid:X} at {data_offset + element_start} overruns its parent")

        if eid in KNOWN_TAG_IDS:
            yield decode_element(EbmlTagId(eid), data[pos : pos + size], data_offset + element_start, data_offset + pos)
        pos += size


# =============================================================================
# Streaming decoder
# =============================================================================


class EbmlStreamDecoder:
    """
    Incremental EBML decoder.

    Usage:
        decoder = EbmlStreamDecoder(buffer_tag_ids=[EbmlTagId.TRACKS])
        decoder.feed(chunk)
        for tag in decoder.tags():
            handle(tag)
    """

    def __init__(self, buffer_tag_ids: Iterable[EbmlTagId] = (), max_buffered_size: Optional[int] = None) -> None:
        self._buffer_tag_ids = frozenset(buffer_tag_ids)
        self._max_buffered_size = max_buffered_size
        self._buf = bytearray()
        self._offset = 0  # Absolute stream offset of self._buf[0]
        self._skip = 0  # Bytes of an unknown element still to discard

    @property
    def position(self) -> int:
        """Absolute stream offset of the next undecoded byte."""
        return self._offset

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet decoded."""
        return len(self._buf)

    def feed(self, chunk: bytes) -> None:
        if chunk:
            self._buf.extend(chunk)

    def reset(self) -> None:
        """Drop buffered bytes and skip state, e.g. after a decode error."""
        self._offset += len(self._buf)
        self._buf.clear()
        self._skip = 0

    def tags(self) -> Iterator[EbmlTag]:
        """
        Yield every element that can be completed from the buffered data.

        The buffer is advanced before each tag is yielded, so a consumer that
        stops early loses nothing: the remaining bytes are decoded on the next
        call.
        """
        while True:
            if self._skip:
                n = min(self._skip, len(self._buf))
                self._consume(n)
                self._skip -= n
                if self._skip:
                    return

            try:
                eid, size, data_pos = read_element_header(self._buf, 0)
            except _Incomplete:
                return

            if eid not in KNOWN_TAG_IDS:
                if size == UNKNOWN_SIZE:
                    raise EbmlDecodeError(f"Unknown-size element 0x{eid:X} at {self._offset} cannot be skipped")
                self._consume(data_pos)
                self._skip = size
                continue

            tag_id = EbmlTagId(eid)
            etype = TAG_TYPES[tag_id]

            if etype is EbmlType.MASTER and (tag_id not in self._buffer_tag_ids or size == UNKNOWN_SIZE):
                if tag_id in self._buffer_tag_ids:
                    raise EbmlDecodeError(f"Unknown-size {tag_id.name} at {self._offset} cannot be buffered")
                if size == UNKNOWN_SIZE:
                    logger.debug("[ebml_decoder] Entering unknown-size %s at %d", tag_id.name, self._offset)
                self._consume(data_pos)
                continue

            if size == UNKNOWN_SIZE:
                raise EbmlDecodeError(f"Unknown-size leaf {tag_id.name} at {self._offset}")
            if etype is EbmlType.MASTER and self._max_buffered_size is not None and size > self._max_buffered_size:
                raise EbmlDecodeError(
                    f"{tag_id.name} at {self._offset} declares {size} bytes, "
                    f"more than the {self._max_buffered_size} that can be buffered"
                )

            end = data_pos + size
            if len(self._buf) < end:
                return

            position = self._offset
            tag = decode_element(tag_id, bytes(self._buf[data_pos:end]), position, position + data_pos)
            self._consume(end)
            yield tag

    def _consume(self, size: int) -> None:
        del self._buf[:size]
        self._offset += size
