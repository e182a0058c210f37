"""
Command line extraction of subtitle tracks and attachments from MKV/WebM files.

    matroska-subtitles movie.mkv -o out/ --attachments
    matroska-subtitles movie.mkv --offset 73400320
"""

import argparse
import asyncio
import logging
import sys
import typing
from pathlib import Path

import aiofiles

from matroska_subtitles.configs import settings
from matroska_subtitles.ebml.decoder import EbmlDecodeError
from matroska_subtitles.parser import SubtitleParser, SubtitleParserBase
from matroska_subtitles.stream import SubtitleStream
from matroska_subtitles.subtitles.cues import DecompressionError
from matroska_subtitles.subtitles.models import AttachedFile, SubtitleCue, SubtitleTrack
from matroska_subtitles.writers import SubtitleDocument

logger = logging.getLogger(__name__)


class ExtractionResult:
    """Documents and attachments collected from one or more chained parsers."""

    def __init__(self, keep_attachments: bool = False):
        self.documents: dict[int, SubtitleDocument] = {}
        self.attachments: list[AttachedFile] = []
        self.keep_attachments = keep_attachments

    def attach(self, parser: SubtitleParserBase) -> None:
        parser.on("tracks", self._on_tracks)
        parser.on("subtitle", self._on_subtitle)
        parser.on("file", self._on_file)

    def _on_tracks(self, tracks: list[SubtitleTrack]) -> None:
        for track in tracks:
            document = self.documents.setdefault(track.number, SubtitleDocument(track))
            document.track = track

    def _on_subtitle(self, cue: SubtitleCue, track_number: int) -> None:
        self.documents[track_number].add(cue)

    def _on_file(self, attached_file: AttachedFile) -> None:
        if self.keep_attachments:
            self.attachments.append(attached_file)


async def _read_chunks(f, chunk_size: int) -> typing.AsyncGenerator[bytes, None]:
    while chunk := await f.read(chunk_size):
        yield chunk


async def _drain(chunks: typing.AsyncIterator[bytes]) -> int:
    total = 0
    async for chunk in chunks:
        total += len(chunk)
    return total


async def extract(
    input_path: Path,
    keep_attachments: bool = False,
    offset: typing.Optional[int] = None,
    chunk_size: typing.Optional[int] = None,
) -> ExtractionResult:
    """
    Parse a Matroska file and collect its subtitle cues and attachments.

    With an offset, the start of the file is parsed until the subtitle tracks
    are known (never past the offset); a SubtitleStream then takes over at the
    offset and resynchronizes on the next Cluster.
    """
    chunk_size = chunk_size or settings.read_chunk_size
    result = ExtractionResult(keep_attachments)
    parser = SubtitleParser()
    result.attach(parser)

    async with aiofiles.open(input_path, "rb") as f:
        if offset is None:
            total = await _drain(parser.transform(_read_chunks(f, chunk_size)))
            logger.info("[extract] Parsed %d bytes of %s", total, input_path)
            return result

        position = 0
        while not result.documents and not parser.ended and position < offset:
            chunk = await f.read(min(chunk_size, offset - position))
            if not chunk:
                break
            position += len(chunk)
            parser.write(chunk)

        if not result.documents:
            logger.info("[extract] No subtitle tracks found in %s", input_path)
            return result

        stream = SubtitleStream(parser)
        result.attach(stream)
        await f.seek(offset)
        total = await _drain(stream.transform(_read_chunks(f, chunk_size)))
        logger.info("[extract] Parsed %d bytes of %s from offset %d", total, input_path, offset)

    return result


def _document_path(output_dir: Path, stem: str, document: SubtitleDocument) -> Path:
    track = document.track
    parts = [stem, f"track{track.number}"]
    if track.language:
        parts.append(track.language)
    return output_dir / f"{'.'.join(parts)}.{document.extension}"


async def write_outputs(result: ExtractionResult, output_dir: Path, stem: str) -> list[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []

    for document in result.documents.values():
        if not document.cues:
            continue
        path = _document_path(output_dir, stem, document)
        async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
            await f.write(document.render())
        written.append(path)
        logger.info("[extract] Track #%d: %d cues -> %s", document.track.number, len(document), path)

    if result.attachments:
        attachments_dir = output_dir / "attachments"
        attachments_dir.mkdir(exist_ok=True)
        for index, attached_file in enumerate(result.attachments, start=1):
            name = Path(attached_file.filename or f"attachment{index}").name
            path = attachments_dir / name
            async with aiofiles.open(path, "wb") as f:
                await f.write(attached_file.data or b"")
            written.append(path)
            logger.info("[extract] Attachment %s (%s) -> %s", name, attached_file.mimetype, path)

    return written


async def run(args: argparse.Namespace) -> list[Path]:
    input_path = Path(args.input)
    result = await extract(input_path, keep_attachments=args.attachments, offset=args.offset)
    return await write_outputs(result, Path(args.output_dir), input_path.stem)


def build_arg_parser() -> argparse.ArgumentParser:
    arg_parser = argparse.ArgumentParser(description="Extracts text subtitle tracks and attachments from MKV/WebM files.")
    arg_parser.add_argument("input", help="Path to the Matroska/WebM file")
    arg_parser.add_argument("-o", "--output-dir", default=settings.output_dir, help="Directory for the extracted files")
    arg_parser.add_argument("--attachments", action="store_true", help="Also extract attached files (fonts)")
    arg_parser.add_argument(
        "--offset", type=int, default=None, help="Start reading clusters at this byte offset after parsing the header"
    )
    return arg_parser


def main(argv: typing.Optional[list[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        written = asyncio.run(run(args))
    except (OSError, EbmlDecodeError, DecompressionError) as e:
        print(f"Error: {e}")
        return 1

    print(f"Wrote {len(written)} file(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
