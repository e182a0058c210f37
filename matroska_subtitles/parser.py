"""
Subtitle parsers for Matroska/WebM byte streams.

A parser is fed raw container bytes, decodes them into EBML tags and turns
the tags it cares about into three events:

- "tracks":   (list[SubtitleTrack])          full current track list
- "subtitle": (SubtitleCue, track_number)    one per subtitle block
- "file":     (AttachedFile)                 one per attachment

Usage:
    parser = SubtitleParser()
    parser.on("subtitle", lambda cue, track: print(track, cue.content))
    async for chunk in parser.transform(source):
        forward(chunk)
"""

import logging
import typing
from collections import defaultdict

from matroska_subtitles.configs import settings
from matroska_subtitles.ebml.decoder import EbmlStreamDecoder
from matroska_subtitles.ebml.tags import EbmlTag, EbmlTagId
from matroska_subtitles.subtitles.attachments import extract_attached_file
from matroska_subtitles.subtitles.cues import build_cue
from matroska_subtitles.subtitles.timecode import TimecodeContext
from matroska_subtitles.subtitles.tracks import TrackRegistry

logger = logging.getLogger(__name__)

EVENTS = ("tracks", "subtitle", "file")

# Composite elements delivered only once their whole subtree is decoded
BUFFERED_TAG_IDS = (
    EbmlTagId.TIMECODE_SCALE,
    EbmlTagId.TRACKS,
    EbmlTagId.BLOCK_GROUP,
    EbmlTagId.ATTACHED_FILE,
)

Listener = typing.Callable[..., typing.Any]


class SubtitleParserBase:
    """
    Shared decoding and tag dispatch.

    Subclasses decide how chunks reach the decoder (write) and what happens
    on decode errors.
    """

    def __init__(self) -> None:
        self.subtitle_tracks = TrackRegistry()
        self.timecode = TimecodeContext()
        self.decoder = EbmlStreamDecoder(
            buffer_tag_ids=BUFFERED_TAG_IDS, max_buffered_size=settings.max_buffered_element_size
        )

        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._ended = False
        self._handlers: dict[EbmlTagId, typing.Callable[[EbmlTag], None]] = {
            EbmlTagId.TIMECODE_SCALE: self._on_timecode_scale,
            EbmlTagId.TIMECODE: self._on_cluster_timecode,
            EbmlTagId.TRACKS: self._on_tracks,
            EbmlTagId.BLOCK_GROUP: self._on_block_group,
            EbmlTagId.ATTACHED_FILE: self._on_attached_file,
        }

    # -- events ---------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown event {event!r}, expected one of {', '.join(EVENTS)}")
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        if listener in self._listeners.get(event, []):
            self._listeners[event].remove(listener)

    def emit(self, event: str, *args: typing.Any) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(*args)

    # -- stream ---------------------------------------------------------------

    @property
    def ended(self) -> bool:
        return self._ended

    def end(self) -> None:
        """Stop decoding. Chunks written afterwards are ignored."""
        self._ended = True

    def write(self, chunk: bytes) -> None:
        """Decode one chunk to completion, emitting every event it produces."""
        if self._ended:
            return
        self._decoder_write(chunk)

    async def transform(self, chunk_iterator: typing.AsyncIterator[bytes]) -> typing.AsyncGenerator[bytes, None]:
        """
        Pass chunks through unchanged while parsing them.

        Each chunk is fully processed before it is yielded. The generator
        finishes as soon as the parser has ended.
        """
        async for chunk in chunk_iterator:
            self.write(chunk)
            yield chunk
            if self._ended:
                break

    def hand_over(self) -> tuple[TrackRegistry, TimecodeContext]:
        """
        Give the track registry and timecode scale to a successor and end.

        The registry is moved, not shared. The cluster base stays behind, the
        successor picks it up from the next cluster.
        """
        tracks = self.subtitle_tracks.take()
        timecode = self.timecode.carry_over()
        self.end()
        return tracks, timecode

    def _decoder_write(self, chunk: bytes) -> None:
        self.decoder.feed(chunk)
        for tag in self.decoder.tags():
            self.parse_ebml_subtitles(tag)

    # -- tag handling ---------------------------------------------------------

    def parse_ebml_subtitles(self, tag: EbmlTag) -> None:
        handler = self._handlers.get(tag.id)
        if handler is not None:
            handler(tag)

    def _on_timecode_scale(self, tag: EbmlTag) -> None:
        self.timecode.set_scale(tag.data)

    def _on_cluster_timecode(self, tag: EbmlTag) -> None:
        # Timecode only appears inside a Cluster
        self.timecode.set_cluster(tag.data)

    def _on_tracks(self, tag: EbmlTag) -> None:
        self.emit("tracks", self.subtitle_tracks.register(tag))

    def _on_block_group(self, tag: EbmlTag) -> None:
        block = tag.child(EbmlTagId.BLOCK)
        if block is None or block.track not in self.subtitle_tracks:
            return

        track = self.subtitle_tracks.get(block.track)
        cue = build_cue(block, tag.child_data(EbmlTagId.BLOCK_DURATION), track, self.timecode)
        self.emit("subtitle", cue, block.track)

    def _on_attached_file(self, tag: EbmlTag) -> None:
        self.emit("file", extract_attached_file(tag))


class SubtitleParser(SubtitleParserBase):
    """
    One-shot parser for a stream read from its beginning.

    Decode and decompression errors propagate to the caller. Once a Tracks
    element has been seen without any subtitle track, decoding stops.
    """

    def _on_tracks(self, tag: EbmlTag) -> None:
        super()._on_tracks(tag)
        if settings.end_without_subtitle_tracks and len(self.subtitle_tracks) == 0:
            logger.info("[subtitle_parser] No subtitle tracks, stop decoding")
            self.end()
