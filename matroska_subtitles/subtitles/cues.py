"""
Subtitle cue synthesis.

Turns a decoded Block of a registered subtitle track into a SubtitleCue with
absolute timing and the cue rendered in its track's format:

- utf8 (SRT):   "00:01:47,250 --> 00:01:49,000\\r\\ntext\\r\\n"
- webvtt:       "00:01:47.250 --> 00:01:49.000\\r\\ntext\\r\\n"
- ssa/ass:      "Dialogue: <layer>,0:01:47.25,0:01:49.00,<style,...,text>"

Matroska stores SSA/ASS events without their start/end times, so the
Dialogue line is rebuilt from the block's own comma-separated fragments with
the absolute times spliced in. Fragments after the times are reused verbatim.
"""

import math
import zlib
from typing import Optional

from matroska_subtitles.ebml.tags import EbmlTag
from matroska_subtitles.subtitles.models import SSA_KEYS, SSA_TYPES, SubtitleCue, SubtitleTrack
from matroska_subtitles.subtitles.timecode import TimecodeContext

_MS_PER_HOUR = 3_600_000
_MS_PER_MINUTE = 60_000
_MS_PER_SECOND = 1000

# Index of the first raw field that is still part of the dialogue text
_SSA_TEXT_INDEX = SSA_KEYS.index("text")


class DecompressionError(Exception):
    """Raised when a compressed block payload cannot be inflated."""


def decompress(data: bytes) -> bytes:
    """Inflate a zlib-compressed block payload."""
    try:
        return zlib.decompress(data)
    except zlib.error as e:
        raise DecompressionError(f"Failed to inflate subtitle payload: {e}") from e


def to_time_string(ms: float, ass: bool = False, comma: bool = False) -> str:
    """
    Format milliseconds as a subtitle timestamp.

    Args:
        ms: Time in milliseconds.
        ass: SSA/ASS style, unpadded hours and centiseconds ("0:01:47.25").
            Otherwise two-digit hours and milliseconds ("00:01:47.250").
        comma: Use "," as the decimal separator (SRT) instead of ".".
    """
    sep = "," if comma else "."
    if not math.isfinite(ms):
        return f"NaN:NaN:NaN{sep}NaN"

    hh = math.floor(ms / _MS_PER_HOUR)
    mm = math.floor(ms / _MS_PER_MINUTE) % 60
    ss = math.floor(ms / _MS_PER_SECOND) % 60

    if ass:
        ff = math.floor((ms % 1000) / 10)
        return f"{hh}:{mm:02d}:{ss:02d}{sep}{ff:02d}"

    ff = math.floor(ms % 1000)
    return f"{hh:02d}:{mm:02d}:{ss:02d}{sep}{ff:03d}"


def _render_ssa(cue: SubtitleCue, track_type: str) -> None:
    values = cue.text.split(",")

    # read order is never kept, ssa has no layer
    for i in range(2 if track_type == "ssa" else 1, _SSA_TEXT_INDEX):
        setattr(cue, SSA_KEYS[i], values[i] if i < len(values) else None)

    if track_type == "ssa":
        marked = "Marked=0"
    else:
        marked = values[1] if len(values) > 1 else ""

    start = to_time_string(cue.time, ass=True)
    end = to_time_string(cue.end, ass=True)
    cue.content = f"Dialogue: {marked},{start},{end}," + ",".join(values[2:])
    cue.text = ",".join(values[_SSA_TEXT_INDEX:])


def render_content(cue: SubtitleCue, track_type: str) -> None:
    """Fill cue.content (and the SSA/ASS fields) for the given track type."""
    if track_type in SSA_TYPES:
        _render_ssa(cue, track_type)
    elif track_type == "utf8":
        cue.content = (
            f"{to_time_string(cue.time, comma=True)} --> {to_time_string(cue.end, comma=True)}\r\n{cue.text}\r\n"
        )
    elif track_type == "webvtt":
        cue.content = f"{to_time_string(cue.time)} --> {to_time_string(cue.end)}\r\n{cue.text}\r\n"
    else:
        cue.content = cue.text


def build_cue(
    block: EbmlTag,
    block_duration: Optional[int],
    track: SubtitleTrack,
    timecode: TimecodeContext,
) -> SubtitleCue:
    """
    Build the cue for a Block of a registered subtitle track.

    Raises:
        DecompressionError: the track is compressed and the payload is not valid zlib data.
    """
    payload = decompress(block.payload) if track.compressed else block.payload

    cue = SubtitleCue(
        text=payload.decode("utf-8", errors="replace"),
        time=timecode.absolute(block.value),
        duration=timecode.span(block_duration),
    )
    render_content(cue, track.type)
    return cue
