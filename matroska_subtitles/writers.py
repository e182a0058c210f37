"""
Assemble the cues of one track into a complete subtitle file.
"""

from matroska_subtitles.subtitles.models import SubtitleCue, SubtitleTrack

EXTENSIONS = {
    "utf8": "srt",
    "webvtt": "vtt",
    "ass": "ass",
    "ssa": "ssa",
}

_SSA_FORMAT = {
    "ass": "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text",
    "ssa": "Format: Marked, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text",
}
_SSA_SCRIPT_TYPE = {"ass": "v4.00+", "ssa": "v4.00"}

NEWLINE = "\r\n"


class SubtitleDocument:
    """Cues of a single track, rendered in the track's native format."""

    def __init__(self, track: SubtitleTrack):
        self.track = track
        self.cues: list[SubtitleCue] = []

    def __len__(self) -> int:
        return len(self.cues)

    @property
    def extension(self) -> str:
        return EXTENSIONS.get(self.track.type, "txt")

    def add(self, cue: SubtitleCue) -> None:
        self.cues.append(cue)

    def render(self) -> str:
        cues = sorted(self.cues, key=lambda c: c.time)
        track_type = self.track.type

        if track_type == "utf8":
            return "".join(f"{i}{NEWLINE}{cue.content}{NEWLINE}" for i, cue in enumerate(cues, start=1))

        if track_type == "webvtt":
            return f"WEBVTT{NEWLINE}{NEWLINE}" + "".join(f"{cue.content}{NEWLINE}" for cue in cues)

        if track_type in _SSA_FORMAT:
            return self._ssa_header() + "".join(f"{cue.content}{NEWLINE}" for cue in cues)

        return "".join(f"{cue.content}{NEWLINE}" for cue in cues)

    def _ssa_header(self) -> str:
        header = self.track.header or f"[Script Info]{NEWLINE}ScriptType: {_SSA_SCRIPT_TYPE[self.track.type]}{NEWLINE}"
        if not header.endswith(("\n", "\r")):
            header += NEWLINE
        if "[Events]" not in header:
            header += f"{NEWLINE}[Events]{NEWLINE}{_SSA_FORMAT[self.track.type]}{NEWLINE}"
        return header
