"""
Seekable subtitle stream.

A SubtitleStream can be attached at an arbitrary byte offset of a file whose
header was already parsed by a previous parser. Until a Cluster boundary is
found the decoder is not fed: a chunk is scanned for the Cluster signature
followed by a size field and the Cluster Timecode id, and decoding starts at
the first match. This is a byte-pattern heuristic, a coincidental match in
media data is accepted as a boundary.
"""

import logging
import typing

from matroska_subtitles.ebml.decoder import EbmlDecodeError
from matroska_subtitles.ebml.tags import EbmlTag, EbmlTagId
from matroska_subtitles.parser import SubtitleParserBase
from matroska_subtitles.subtitles.cues import DecompressionError

logger = logging.getLogger(__name__)


class ClusterResynchronizer:
    """
    Finds the first Cluster boundary in a byte stream joined mid-file.

    While unstable, chunks without a boundary are dropped. Once a boundary is
    found the chunk is cut there and every later chunk passes unchanged.
    """

    CLUSTER_SIGNATURE = EbmlTagId.CLUSTER.to_bytes(4, "big")  # 1F 43 B6 75
    # The first child of a Cluster is its Timecode
    TIMECODE_ID = int(EbmlTagId.TIMECODE)

    # Bytes that must follow a candidate offset: Cluster ID plus the longest size field
    _MIN_TAIL = 12

    def __init__(self, stable: bool = True):
        self.stable = stable

    @classmethod
    def find_cluster_start(cls, chunk: bytes) -> typing.Optional[int]:
        """
        Find the offset of a Cluster element in chunk.

        Returns:
            Offset of the Cluster ID, or None if no candidate is confirmed.
        """
        # Candidates must start before len(chunk) - _MIN_TAIL
        search_end = len(chunk) - cls._MIN_TAIL + len(cls.CLUSTER_SIGNATURE) - 1
        i = chunk.find(cls.CLUSTER_SIGNATURE, 0, max(search_end, 0))
        while i != -1:
            size_byte = chunk[i + 4]
            if size_byte:
                # Length of the size field from the position of its leading one bit
                size_length = 8 - (size_byte.bit_length() - 1)
                if chunk[i + 4 + size_length] == cls.TIMECODE_ID:
                    return i
            i = chunk.find(cls.CLUSTER_SIGNATURE, i + 1, search_end)
        return None

    def process(self, chunk: bytes) -> typing.Optional[bytes]:
        """
        Return the part of chunk to decode, or None if it must be dropped.
        """
        if self.stable:
            return chunk

        offset = self.find_cluster_start(chunk)
        if offset is None:
            logger.debug("[subtitle_stream] No cluster boundary in %d byte chunk, dropped", len(chunk))
            return None

        self.stable = True
        logger.debug("[subtitle_stream] Resynchronized on cluster at chunk offset %d", offset)
        return chunk[offset:]


class SubtitleStream(SubtitleParserBase):
    """
    Parser that can take over from a previous parser mid-stream.

    Usage:
        header_parser = SubtitleParser()
        ...  # feed the start of the file
        stream = SubtitleStream(header_parser)
        async for chunk in stream.transform(bytes_from_offset):
            forward(chunk)

    Decode and decompression errors are logged and never stop the stream.
    """

    def __init__(self, prev_instance: typing.Optional[SubtitleParserBase] = None):
        super().__init__()
        self.resync = ClusterResynchronizer()

        if prev_instance is not None:
            self.subtitle_tracks, self.timecode = prev_instance.hand_over()
            # may not be at an EBML tag offset
            self.resync.stable = False

    @property
    def unstable(self) -> bool:
        return not self.resync.stable

    def write(self, chunk: bytes) -> None:
        if self._ended:
            return
        data = self.resync.process(chunk)
        if data is not None:
            self._decoder_write(data)

    def _decoder_write(self, chunk: bytes) -> None:
        # a broken chunk must not stop chained streams
        try:
            super()._decoder_write(chunk)
        except EbmlDecodeError as e:
            logger.warning("[subtitle_stream] EBML stream decoding error: %s", e)
            self.decoder.reset()

    def parse_ebml_subtitles(self, tag: EbmlTag) -> None:
        # only the failing cue is lost, later tags of the chunk still decode
        try:
            super().parse_ebml_subtitles(tag)
        except DecompressionError as e:
            logger.warning("[subtitle_stream] Subtitle decompression error: %s", e)
