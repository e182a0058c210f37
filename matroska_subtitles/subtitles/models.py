from dataclasses import dataclass
from typing import Optional

# Subtitle subtypes that carry SSA/ASS dialogue fields
SSA_TYPES = frozenset({"ssa", "ass"})

# Field order of a Matroska SSA/ASS block payload
SSA_KEYS = ["read_order", "layer", "style", "name", "margin_l", "margin_r", "margin_v", "effect", "text"]


@dataclass
class SubtitleTrack:
    """A subtitle track registered from a TrackEntry."""

    number: int
    type: str  # "utf8", "ssa", "ass", "webvtt" (any S_TEXT/ suffix, lowercased)
    language: Optional[str] = None
    name: Optional[str] = None
    header: Optional[str] = None  # CodecPrivate, e.g. the SSA/ASS script header
    compressed: bool = False


@dataclass
class SubtitleCue:
    """A single subtitle entry with absolute timing."""

    text: str
    time: float  # Absolute start in milliseconds
    duration: float  # Milliseconds, NaN when the block has no BlockDuration
    content: str = ""  # Fully rendered, format-specific cue

    # SSA/ASS dialogue fields
    read_order: Optional[str] = None
    layer: Optional[str] = None
    style: Optional[str] = None
    name: Optional[str] = None
    margin_l: Optional[str] = None
    margin_r: Optional[str] = None
    margin_v: Optional[str] = None
    effect: Optional[str] = None

    @property
    def end(self) -> float:
        return self.time + self.duration


@dataclass
class AttachedFile:
    """An embedded file, typically a font used by SSA/ASS tracks."""

    filename: Optional[str]
    mimetype: Optional[str]
    data: Optional[bytes]
    description: Optional[str] = None
