import math

import pytest

from matroska_subtitles.ebml.decoder import EbmlDecodeError
from matroska_subtitles.parser import SubtitleParser
from matroska_subtitles.subtitles.cues import DecompressionError

from mkv_factory import (
    attached_file,
    block_group,
    build_mkv,
    chunked,
    cluster,
    compressed,
    track_entry,
    tracks,
)


async def _aiter(chunks):
    for chunk in chunks:
        yield chunk


def _feed(parser, data: bytes, chunk_size: int = 7):
    for chunk in chunked(data, chunk_size):
        parser.write(chunk)


def test_srt_stream_end_to_end(recorder):
    data = build_mkv(
        [track_entry(1, "V_MPEG4/ISO/AVC", track_type=1), track_entry(3, "S_TEXT/UTF8", language="eng")],
        [
            cluster(100000, block_group(3, 7250, b"Hello", duration=2000)),
            cluster(200000, block_group(3, 0, b"Bye", duration=500), block_group(1, 0, b"\x00\x01video")),
        ],
    )
    parser = SubtitleParser()
    events = recorder(parser)
    _feed(parser, data)

    assert len(events.tracks) == 1
    assert [t.number for t in events.tracks[0]] == [3]
    assert [number for _, number in events.subtitles] == [3, 3]

    first, second = events.cues
    assert first.time == 107250
    assert first.duration == 2000
    assert first.content == "00:01:47,250 --> 00:01:49,250\r\nHello\r\n"
    assert second.time == 200000
    assert second.content == "00:03:20,000 --> 00:03:20,500\r\nBye\r\n"


def test_timecode_scale_applies_to_time_and_duration(recorder):
    data = build_mkv(
        [track_entry(2, "S_TEXT/WEBVTT")],
        [cluster(2000, block_group(2, 10, b"cue", duration=40))],
        timecode_scale=500_000,
    )
    parser = SubtitleParser()
    events = recorder(parser)
    parser.write(data)

    assert parser.timecode.scale == 0.5
    (cue,) = events.cues
    assert cue.time == (10 + 2000) * 0.5
    assert cue.duration == 40 * 0.5
    assert cue.content == "00:00:01.005 --> 00:00:01.025\r\ncue\r\n"


def test_ass_track_cue_fields(recorder):
    data = build_mkv(
        [track_entry(4, "S_TEXT/ASS", header="[Script Info]\r\n")],
        [cluster(100000, block_group(4, 7250, b"0,1,Default,,0,0,0,,Hello, world", duration=2000))],
    )
    parser = SubtitleParser()
    events = recorder(parser)
    _feed(parser, data, chunk_size=3)

    assert events.tracks[0][0].header == "[Script Info]\r\n"
    (cue,) = events.cues
    assert cue.style == "Default"
    assert cue.text == "Hello, world"
    assert cue.content == "Dialogue: 1,0:01:47.25,0:01:49.25,Default,,0,0,0,,Hello, world"


def test_unregistered_track_produces_no_subtitle(recorder):
    data = build_mkv(
        [track_entry(3, "S_TEXT/UTF8")],
        [cluster(0, block_group(9, 0, b"ghost", duration=10), block_group(3, 0, b"real", duration=10))],
    )
    parser = SubtitleParser()
    events = recorder(parser)
    parser.write(data)

    assert [cue.text for cue in events.cues] == ["real"]


def test_compressed_track_is_inflated(recorder):
    data = build_mkv(
        [track_entry(3, "S_TEXT/UTF8", compressed=True)],
        [cluster(0, block_group(3, 0, compressed("squeezed"), duration=10))],
    )
    parser = SubtitleParser()
    events = recorder(parser)
    parser.write(data)

    assert events.tracks[0][0].compressed is True
    assert events.cues[0].text == "squeezed"


def test_one_shot_parser_propagates_decompression_error():
    data = build_mkv(
        [track_entry(3, "S_TEXT/UTF8", compressed=True)],
        [cluster(0, block_group(3, 0, b"not deflated", duration=10))],
    )
    parser = SubtitleParser()
    with pytest.raises(DecompressionError):
        parser.write(data)


def test_one_shot_parser_propagates_decode_error():
    parser = SubtitleParser()
    with pytest.raises(EbmlDecodeError):
        parser.write(b"\x00\x00\x00\x00")


def test_missing_block_duration(recorder):
    data = build_mkv([track_entry(3, "S_TEXT/UTF8")], [cluster(0, block_group(3, 0, b"open ended"))])
    parser = SubtitleParser()
    events = recorder(parser)
    parser.write(data)

    assert math.isnan(events.cues[0].duration)


def test_attachments_emit_file_records(recorder):
    data = build_mkv(
        [track_entry(3, "S_TEXT/ASS")],
        [],
        extra=attached_file("font.ttf", "application/x-truetype-font", b"\x00\x01\x00\x00", description="Main font")
        + attached_file("font.ttf", "application/x-truetype-font", b"\x00\x01\x00\x00"),
    )
    parser = SubtitleParser()
    events = recorder(parser)
    parser.write(data)

    assert len(events.files) == 2
    assert events.files[0].filename == "font.ttf"
    assert events.files[0].mimetype == "application/x-truetype-font"
    assert events.files[0].data == b"\x00\x01\x00\x00"
    assert events.files[0].description == "Main font"
    assert events.files[1].description is None


def test_later_tracks_element_emits_full_state(recorder):
    data = build_mkv([track_entry(3, "S_TEXT/UTF8")], [], extra=tracks(track_entry(5, "S_TEXT/ASS")))
    parser = SubtitleParser()
    events = recorder(parser)
    parser.write(data)

    assert [[t.number for t in emitted] for emitted in events.tracks] == [[3], [3, 5]]


def test_parser_ends_without_subtitle_tracks(recorder):
    data = build_mkv(
        [track_entry(1, "V_MPEG4/ISO/AVC", track_type=1)],
        [cluster(0, block_group(1, 0, b"frame", duration=10))],
    )
    parser = SubtitleParser()
    events = recorder(parser)
    parser.write(data)

    assert parser.ended
    assert events.tracks == [[]]
    parser.write(b"\x00\x00")  # ignored once ended


def test_unknown_event_name_rejected():
    with pytest.raises(ValueError):
        SubtitleParser().on("cue", print)


def test_off_removes_listener(recorder):
    parser = SubtitleParser()
    seen = []
    parser.on("tracks", seen.append)
    parser.off("tracks", seen.append)
    parser.write(build_mkv([track_entry(3, "S_TEXT/UTF8")], []))

    assert seen == []


@pytest.mark.asyncio
async def test_transform_passes_bytes_through(recorder):
    data = build_mkv(
        [track_entry(3, "S_TEXT/UTF8")],
        [cluster(1000, block_group(3, 0, b"Hello", duration=10))],
    )
    chunks = chunked(data, 16)
    parser = SubtitleParser()
    events = recorder(parser)

    out = [chunk async for chunk in parser.transform(_aiter(chunks))]

    assert b"".join(out) == data
    assert [cue.text for cue in events.cues] == ["Hello"]


@pytest.mark.asyncio
async def test_transform_stops_once_ended():
    header = build_mkv([track_entry(1, "V_MPEG4/ISO/AVC", track_type=1)], [])
    parser = SubtitleParser()

    out = [chunk async for chunk in parser.transform(_aiter([header, b"more", b"data"]))]

    assert out == [header]
