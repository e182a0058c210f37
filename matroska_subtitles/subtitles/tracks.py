"""
Subtitle track registry built from the Matroska Tracks element.
"""

import logging
from typing import Optional

from matroska_subtitles.ebml.tags import TRACK_TYPE_SUBTITLE, EbmlTag, EbmlTagId
from matroska_subtitles.subtitles.models import SubtitleTrack

logger = logging.getLogger(__name__)

CODEC_ID_TEXT_PREFIX = "S_TEXT/"


def subtitle_type(codec_id: str) -> Optional[str]:
    """
    Derive the track type from a codec ID.

    "S_TEXT/ASS" -> "ass", "S_TEXT/UTF8" -> "utf8", "S_TEXT/WEBVTT" -> "webvtt".
    Returns None for codecs that are not text subtitles.
    """
    if not codec_id.upper().startswith(CODEC_ID_TEXT_PREFIX):
        return None
    return codec_id[len(CODEC_ID_TEXT_PREFIX) :].lower()


def is_compressed(entry: EbmlTag) -> bool:
    """True when the entry declares ContentEncodings > ContentEncoding > ContentCompression."""
    for encodings in entry.children_of(EbmlTagId.CONTENT_ENCODINGS):
        for encoding in encodings.children_of(EbmlTagId.CONTENT_ENCODING):
            if encoding.child(EbmlTagId.CONTENT_COMPRESSION) is not None:
                return True
    return False


def parse_track_entry(entry: EbmlTag) -> Optional[SubtitleTrack]:
    """Build a SubtitleTrack from a TrackEntry, or None if it is not a text subtitle track."""
    if entry.child_data(EbmlTagId.TRACK_TYPE) != TRACK_TYPE_SUBTITLE:
        return None

    track_type = subtitle_type(entry.child_data(EbmlTagId.CODEC_ID) or "")
    if track_type is None:
        return None

    track = SubtitleTrack(
        number=entry.child_data(EbmlTagId.TRACK_NUMBER),
        type=track_type,
        language=entry.child_data(EbmlTagId.LANGUAGE),
    )

    name = entry.child_data(EbmlTagId.NAME)
    if name:
        track.name = name

    header = entry.child_data(EbmlTagId.CODEC_PRIVATE)
    if header:
        track.header = header.decode("utf-8", errors="replace")

    # Only zlib deflate is supported, ContentCompAlgo is not consulted
    if is_compressed(entry):
        track.compressed = True

    return track


class TrackRegistry:
    """Subtitle tracks keyed by track number, in registration order."""

    def __init__(self) -> None:
        self._tracks: dict[int, SubtitleTrack] = {}

    def __contains__(self, number: object) -> bool:
        return number in self._tracks

    def __len__(self) -> int:
        return len(self._tracks)

    def get(self, number: int) -> Optional[SubtitleTrack]:
        return self._tracks.get(number)

    def upsert(self, track: SubtitleTrack) -> None:
        self._tracks[track.number] = track

    def tracks(self) -> list[SubtitleTrack]:
        return list(self._tracks.values())

    def take(self) -> "TrackRegistry":
        """Move the registered tracks into a new registry, leaving this one empty."""
        moved = TrackRegistry()
        moved._tracks, self._tracks = self._tracks, {}
        return moved

    def register(self, tracks_tag: EbmlTag) -> list[SubtitleTrack]:
        """
        Register every subtitle TrackEntry of a Tracks element.

        Returns:
            The full current track list, not only the tracks added here.
        """
        for entry in tracks_tag.children_of(EbmlTagId.TRACK_ENTRY):
            track = parse_track_entry(entry)
            if track is not None:
                self.upsert(track)

        tracks = self.tracks()
        logger.info(
            "[tracks] %d subtitle track(s): %s",
            len(tracks),
            ", ".join(f"#{t.number}={t.type}" for t in tracks) or "none",
        )
        return tracks
