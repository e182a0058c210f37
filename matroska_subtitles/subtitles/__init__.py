"""
Semantic layer: subtitle tracks, cluster timing, cues and attachments.
"""

from matroska_subtitles.subtitles.attachments import extract_attached_file
from matroska_subtitles.subtitles.cues import DecompressionError, build_cue, decompress, to_time_string
from matroska_subtitles.subtitles.models import AttachedFile, SubtitleCue, SubtitleTrack
from matroska_subtitles.subtitles.timecode import TimecodeContext
from matroska_subtitles.subtitles.tracks import TrackRegistry, parse_track_entry, subtitle_type

__all__ = [
    "AttachedFile",
    "DecompressionError",
    "SubtitleCue",
    "SubtitleTrack",
    "TimecodeContext",
    "TrackRegistry",
    "build_cue",
    "decompress",
    "extract_attached_file",
    "parse_track_entry",
    "subtitle_type",
    "to_time_string",
]
