"""
EBML element identities and the decoded tag model.

Only the elements needed to follow subtitle tracks, cluster timing and
attachments are listed. Anything else in the stream is skipped by the
decoder, so dispatch code can rely on `EbmlTagId` being a closed set.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional


class EbmlType(Enum):
    MASTER = "m"
    UINT = "u"
    INT = "i"
    FLOAT = "f"
    STRING = "s"
    UTF8 = "8"
    BINARY = "b"
    BLOCK = "block"


class EbmlTagId(IntEnum):
    # Top-level
    EBML = 0x1A45DFA3
    SEGMENT = 0x18538067
    SEEK_HEAD = 0x114D9B74

    # Info
    INFO = 0x1549A966
    TIMECODE_SCALE = 0x2AD7B1
    DURATION = 0x4489

    # Tracks
    TRACKS = 0x1654AE6B
    TRACK_ENTRY = 0xAE
    TRACK_NUMBER = 0xD7
    TRACK_UID = 0x73C5
    TRACK_TYPE = 0x83
    CODEC_ID = 0x86
    CODEC_PRIVATE = 0x63A2
    NAME = 0x536E
    LANGUAGE = 0x22B59C
    VIDEO = 0xE0
    AUDIO = 0xE1

    # Content encoding
    CONTENT_ENCODINGS = 0x6D80
    CONTENT_ENCODING = 0x6240
    CONTENT_COMPRESSION = 0x5034
    CONTENT_COMP_ALGO = 0x4254
    CONTENT_COMP_SETTINGS = 0x4255

    # Cluster
    CLUSTER = 0x1F43B675
    TIMECODE = 0xE7
    SIMPLE_BLOCK = 0xA3
    BLOCK_GROUP = 0xA0
    BLOCK = 0xA1
    BLOCK_DURATION = 0x9B

    # Other top-level masters
    CUES = 0x1C53BB6B
    CHAPTERS = 0x1043A770
    TAGS = 0x1254C367

    # Attachments
    ATTACHMENTS = 0x1941A469
    ATTACHED_FILE = 0x61A7
    FILE_DESCRIPTION = 0x467E
    FILE_NAME = 0x466E
    FILE_MIME_TYPE = 0x4660
    FILE_DATA = 0x465C
    FILE_UID = 0x46AE


TAG_TYPES: dict[EbmlTagId, EbmlType] = {
    EbmlTagId.EBML: EbmlType.MASTER,
    EbmlTagId.SEGMENT: EbmlType.MASTER,
    EbmlTagId.SEEK_HEAD: EbmlType.MASTER,
    EbmlTagId.INFO: EbmlType.MASTER,
    EbmlTagId.TIMECODE_SCALE: EbmlType.UINT,
    EbmlTagId.DURATION: EbmlType.FLOAT,
    EbmlTagId.TRACKS: EbmlType.MASTER,
    EbmlTagId.TRACK_ENTRY: EbmlType.MASTER,
    EbmlTagId.TRACK_NUMBER: EbmlType.UINT,
    EbmlTagId.TRACK_UID: EbmlType.UINT,
    EbmlTagId.TRACK_TYPE: EbmlType.UINT,
    EbmlTagId.CODEC_ID: EbmlType.STRING,
    EbmlTagId.CODEC_PRIVATE: EbmlType.BINARY,
    EbmlTagId.NAME: EbmlType.UTF8,
    EbmlTagId.LANGUAGE: EbmlType.STRING,
    EbmlTagId.VIDEO: EbmlType.MASTER,
    EbmlTagId.AUDIO: EbmlType.MASTER,
    EbmlTagId.CONTENT_ENCODINGS: EbmlType.MASTER,
    EbmlTagId.CONTENT_ENCODING: EbmlType.MASTER,
    EbmlTagId.CONTENT_COMPRESSION: EbmlType.MASTER,
    EbmlTagId.CONTENT_COMP_ALGO: EbmlType.UINT,
    EbmlTagId.CONTENT_COMP_SETTINGS: EbmlType.BINARY,
    EbmlTagId.CLUSTER: EbmlType.MASTER,
    EbmlTagId.TIMECODE: EbmlType.UINT,
    EbmlTagId.SIMPLE_BLOCK: EbmlType.BLOCK,
    EbmlTagId.BLOCK_GROUP: EbmlType.MASTER,
    EbmlTagId.BLOCK: EbmlType.BLOCK,
    EbmlTagId.BLOCK_DURATION: EbmlType.UINT,
    EbmlTagId.CUES: EbmlType.MASTER,
    EbmlTagId.CHAPTERS: EbmlType.MASTER,
    EbmlTagId.TAGS: EbmlType.MASTER,
    EbmlTagId.ATTACHMENTS: EbmlType.MASTER,
    EbmlTagId.ATTACHED_FILE: EbmlType.MASTER,
    EbmlTagId.FILE_DESCRIPTION: EbmlType.UTF8,
    EbmlTagId.FILE_NAME: EbmlType.UTF8,
    EbmlTagId.FILE_MIME_TYPE: EbmlType.STRING,
    EbmlTagId.FILE_DATA: EbmlType.BINARY,
    EbmlTagId.FILE_UID: EbmlType.UINT,
}

KNOWN_TAG_IDS = frozenset(int(tag_id) for tag_id in EbmlTagId)

# Matroska track type for subtitle tracks
TRACK_TYPE_SUBTITLE = 0x11


@dataclass
class EbmlTag:
    """A decoded EBML element."""

    id: EbmlTagId
    position: int = 0  # Absolute stream offset of the element ID
    size: int = 0  # Declared data size
    data: Any = None  # Decoded leaf value (int, float, str or bytes)
    children: list["EbmlTag"] = field(default_factory=list)

    # Block fields (Block / SimpleBlock only)
    track: int = 0
    value: int = 0  # Timecode relative to the enclosing cluster
    flags: int = 0
    payload: bytes = b""

    @property
    def type(self) -> EbmlType:
        return TAG_TYPES[self.id]

    def child(self, tag_id: EbmlTagId) -> Optional["EbmlTag"]:
        """Return the first direct child with the given id."""
        for c in self.children:
            if c.id == tag_id:
                return c
        return None

    def child_data(self, tag_id: EbmlTagId) -> Any:
        """Return the data of the first direct child with the given id, or None."""
        el = self.child(tag_id)
        return el.data if el is not None else None

    def children_of(self, tag_id: EbmlTagId) -> list["EbmlTag"]:
        return [c for c in self.children if c.id == tag_id]
