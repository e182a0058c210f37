"""
Subtitle and attachment extraction from Matroska/WebM byte streams.

- ebml: element identities and a push-based EBML stream decoder
- subtitles: track registry, timecode context, cue synthesis, attachments
- parser: one-shot SubtitleParser
- stream: seekable SubtitleStream with cluster resynchronization
- writers: complete SRT / WebVTT / SSA / ASS documents from cues
"""

from matroska_subtitles.ebml.decoder import EbmlDecodeError
from matroska_subtitles.parser import SubtitleParser, SubtitleParserBase
from matroska_subtitles.stream import ClusterResynchronizer, SubtitleStream
from matroska_subtitles.subtitles.cues import DecompressionError, to_time_string
from matroska_subtitles.subtitles.models import AttachedFile, SubtitleCue, SubtitleTrack

__all__ = [
    "AttachedFile",
    "ClusterResynchronizer",
    "DecompressionError",
    "EbmlDecodeError",
    "SubtitleCue",
    "SubtitleParser",
    "SubtitleParserBase",
    "SubtitleStream",
    "SubtitleTrack",
    "to_time_string",
]
