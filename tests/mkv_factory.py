"""
Builders for small Matroska byte streams used by the tests.
"""

import zlib
from typing import Optional

from matroska_subtitles.ebml.tags import EbmlTagId

UNKNOWN_SIZE_FIELD = b"\x01\xff\xff\xff\xff\xff\xff\xff"


def encode_size(n: int) -> bytes:
    for length in range(1, 9):
        if n < (1 << (7 * length)) - 1:
            return (n | (1 << (7 * length))).to_bytes(length, "big")
    raise ValueError(f"size {n} too large")


def encode_id(tag_id: int) -> bytes:
    return tag_id.to_bytes((tag_id.bit_length() + 7) // 8, "big")


def element(tag_id: int, payload: bytes) -> bytes:
    return encode_id(tag_id) + encode_size(len(payload)) + payload


def master(tag_id: int, *children: bytes) -> bytes:
    return element(tag_id, b"".join(children))


def uint(tag_id: int, value: int) -> bytes:
    return element(tag_id, value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big"))


def string(tag_id: int, value: str) -> bytes:
    return element(tag_id, value.encode("utf-8"))


def ebml_header() -> bytes:
    # EBMLVersion, DocType: ids outside the known set, skipped by the decoder
    return master(EbmlTagId.EBML, uint(0x4286, 1), string(0x4282, "matroska"))


def segment_start() -> bytes:
    return encode_id(EbmlTagId.SEGMENT) + UNKNOWN_SIZE_FIELD


def info(timecode_scale: int = 1_000_000) -> bytes:
    return master(EbmlTagId.INFO, uint(EbmlTagId.TIMECODE_SCALE, timecode_scale))


def track_entry(
    number: int,
    codec_id: str,
    track_type: int = 0x11,
    language: Optional[str] = None,
    name: Optional[str] = None,
    header: Optional[str] = None,
    compressed: bool = False,
) -> bytes:
    children = [
        uint(EbmlTagId.TRACK_NUMBER, number),
        uint(EbmlTagId.TRACK_TYPE, track_type),
        string(EbmlTagId.CODEC_ID, codec_id),
    ]
    if language is not None:
        children.append(string(EbmlTagId.LANGUAGE, language))
    if name is not None:
        children.append(string(EbmlTagId.NAME, name))
    if header is not None:
        children.append(string(EbmlTagId.CODEC_PRIVATE, header))
    if compressed:
        children.append(
            master(
                EbmlTagId.CONTENT_ENCODINGS,
                master(
                    EbmlTagId.CONTENT_ENCODING,
                    master(EbmlTagId.CONTENT_COMPRESSION, uint(EbmlTagId.CONTENT_COMP_ALGO, 0)),
                ),
            )
        )
    return master(EbmlTagId.TRACK_ENTRY, *children)


def tracks(*entries: bytes) -> bytes:
    return master(EbmlTagId.TRACKS, *entries)


def block(track: int, relative: int, payload: bytes, flags: int = 0) -> bytes:
    header = encode_size(track) + relative.to_bytes(2, "big", signed=True) + bytes([flags])
    return element(EbmlTagId.BLOCK, header + payload)


def block_group(track: int, relative: int, payload: bytes, duration: Optional[int] = None) -> bytes:
    children = [block(track, relative, payload)]
    if duration is not None:
        children.append(uint(EbmlTagId.BLOCK_DURATION, duration))
    return master(EbmlTagId.BLOCK_GROUP, *children)


def cluster(timecode: int, *children: bytes) -> bytes:
    return master(EbmlTagId.CLUSTER, uint(EbmlTagId.TIMECODE, timecode), *children)


def attached_file(filename: str, mimetype: str, data: bytes, description: Optional[str] = None) -> bytes:
    children = [string(EbmlTagId.FILE_NAME, filename), string(EbmlTagId.FILE_MIME_TYPE, mimetype)]
    if description is not None:
        children.append(string(EbmlTagId.FILE_DESCRIPTION, description))
    children.append(element(EbmlTagId.FILE_DATA, data))
    return master(EbmlTagId.ATTACHMENTS, master(EbmlTagId.ATTACHED_FILE, *children))


def compressed(text: str) -> bytes:
    return zlib.compress(text.encode("utf-8"))


def build_header(*entries: bytes, timecode_scale: int = 1_000_000) -> bytes:
    return ebml_header() + segment_start() + info(timecode_scale) + tracks(*entries)


def build_mkv(entries: list[bytes], clusters: list[bytes], timecode_scale: int = 1_000_000, extra: bytes = b"") -> bytes:
    return build_header(*entries, timecode_scale=timecode_scale) + extra + b"".join(clusters)


def chunked(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]
