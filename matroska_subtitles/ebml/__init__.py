"""
Minimal EBML layer: element identities and a push-based stream decoder.
"""

from matroska_subtitles.ebml.decoder import UNKNOWN_SIZE, EbmlDecodeError, EbmlStreamDecoder
from matroska_subtitles.ebml.tags import TRACK_TYPE_SUBTITLE, EbmlTag, EbmlTagId, EbmlType

__all__ = [
    "UNKNOWN_SIZE",
    "EbmlDecodeError",
    "EbmlStreamDecoder",
    "TRACK_TYPE_SUBTITLE",
    "EbmlTag",
    "EbmlTagId",
    "EbmlType",
]
