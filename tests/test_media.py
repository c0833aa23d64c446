import re

import pytest

from govdl.media import (
    DownloadedMedia,
    Extractor,
    ExtractorResponse,
    Media,
    MediaCodec,
    MediaFormat,
    MediaType,
)


def make_media(*formats):
    media = Media(content_id="id1", content_url="https://example.com/v", extractor_code_name="ex")
    for fmt in formats:
        media.add_format(fmt)
    return media


def video(fid, codec=MediaCodec.AVC, bitrate=0, width=0, height=0, audio=None):
    return MediaFormat(
        format_id=fid,
        type=MediaType.VIDEO,
        video_codec=codec,
        audio_codec=audio,
        bitrate=bitrate,
        width=width,
        height=height,
    )


def audio(fid, codec=MediaCodec.AAC, bitrate=0):
    return MediaFormat(format_id=fid, type=MediaType.AUDIO, audio_codec=codec, bitrate=bitrate)


def photo(fid):
    return MediaFormat(format_id=fid, type=MediaType.PHOTO)


def test_new_media_uses_extractor_code_name():
    extractor = Extractor(name="Example", code_name="example", url_pattern=re.compile("x"))
    media = extractor.new_media("abc", "https://example.com/abc")
    assert media.content_id == "abc"
    assert media.content_url == "https://example.com/abc"
    assert media.extractor_code_name == "example"
    assert media.formats == []


def test_get_format_by_id():
    a, b = video("a"), video("b")
    media = make_media(a, b)
    assert media.get_format("b") is b
    assert media.get_format("missing") is None


def test_default_video_prefers_avc_then_bitrate():
    hevc = video("hevc", MediaCodec.HEVC, bitrate=9000)
    low = video("low", bitrate=100, height=360)
    high = video("high", bitrate=500, height=720)
    media = make_media(hevc, low, high)
    best = media.get_default_video_format()
    assert best is high
    assert high.is_default
    assert not low.is_default


def test_default_video_tie_broken_by_height():
    small = video("small", bitrate=100, height=360)
    big = video("big", bitrate=100, height=1080)
    assert make_media(small, big).get_default_video_format() is big


def test_default_video_falls_back_to_any_codec():
    vp9 = video("vp9", MediaCodec.VP9, bitrate=10)
    assert make_media(vp9, audio("a")).get_default_video_format() is vp9


def test_default_video_none():
    assert make_media(audio("a")).get_default_video_format() is None


def test_default_audio_prefers_aac_mp3_and_highest_bitrate():
    opus = audio("opus", MediaCodec.OPUS, bitrate=999)
    aac = audio("aac", MediaCodec.AAC, bitrate=128)
    mp3 = audio("mp3", MediaCodec.MP3, bitrate=320)
    media = make_media(opus, aac, mp3, video("v", audio=MediaCodec.AAC, bitrate=5000))
    best = media.get_default_audio_format()
    assert best is mp3
    assert mp3.is_default


def test_default_audio_fallback_and_first_on_tie():
    first = audio("o1", MediaCodec.OPUS, bitrate=64)
    second = audio("o2", MediaCodec.OPUS, bitrate=64)
    assert make_media(first, second).get_default_audio_format() is first


def test_default_photo_is_first():
    p1, p2 = photo("p1"), photo("p2")
    media = make_media(p1, p2)
    assert media.get_default_photo_format() is p1
    assert p1.is_default and not p2.is_default


def test_default_format_order():
    p = photo("p")
    a = audio("a")
    v = video("v")
    assert make_media(p, a, v).get_default_format() is v
    assert make_media(p, a).get_default_format() is a
    assert make_media(p).get_default_format() is p
    assert make_media().get_default_format() is None


def test_audio_from_video_format():
    v = video("v", bitrate=10)
    v.url = ["https://example.com/v.mp4"]
    v.duration = 42
    v.title = "Song"
    v.artist = "Band"
    result = make_media(v).get_audio_from_video_format()
    assert result.format_id == "AudioFromVideo"
    assert result.type is MediaType.AUDIO
    assert result.audio_codec is MediaCodec.AAC
    assert result.video_codec is None
    assert result.url == v.url
    assert result.duration == 42
    assert (result.title, result.artist) == ("Song", "Band")
    assert make_media(audio("a")).get_audio_from_video_format() is None


def test_set_caption_ignores_empty():
    media = make_media()
    media.set_caption("")
    assert media.caption is None
    media.set_caption("hello")
    assert media.caption == "hello"
    media.set_caption("")
    assert media.caption == "hello"


def test_sorted_formats_dedup_and_order():
    v_low = video("v_low", bitrate=100, width=640, height=360)
    v_dup_high = video("v_dup", bitrate=200, width=640, height=360)
    v_hd = video("v_hd", bitrate=300, width=1280, height=720)
    v_hevc = video("v_hevc", MediaCodec.HEVC, bitrate=50, width=640, height=360)
    a1 = audio("a1", MediaCodec.AAC, bitrate=128)
    a1_dup = audio("a1_dup", MediaCodec.AAC, bitrate=128)
    a_mp3 = audio("a_mp3", MediaCodec.MP3, bitrate=320)
    p = photo("p")
    media = make_media(p, a1, v_hd, v_low, a_mp3, v_hevc, v_dup_high, a1_dup)
    ids = [f.format_id for f in media.get_sorted_formats()]
    assert ids == ["v_dup", "v_hd", "v_hevc", "a_mp3", "a1", "p"]


def test_sorted_formats_keeps_untyped():
    untyped = MediaFormat(format_id="x")
    result = make_media(untyped, video("v")).get_sorted_formats()
    assert [f.format_id for f in result] == ["x", "v"]


def test_has_and_supports():
    media = make_media(video("v", audio=MediaCodec.AAC))
    assert media.has_video()
    assert not media.has_audio()
    assert not media.has_photo()
    assert media.supports_audio()
    assert media.supports_audio_from_video()

    silent = make_media(video("v"))
    assert not silent.supports_audio()
    assert not silent.supports_audio_from_video()

    with_audio = make_media(video("v", audio=MediaCodec.AAC), audio("a"))
    assert not with_audio.supports_audio_from_video()
    assert make_media(photo("p")).has_photo()


@pytest.mark.parametrize(
    "fmt, expected",
    [
        (photo("p"), ("jpeg", "photo")),
        (video("v", MediaCodec.AVC, audio=MediaCodec.AAC), ("mp4", "video")),
        (video("v", MediaCodec.AVC, audio=MediaCodec.MP3), ("mp4", "video")),
        (video("v", MediaCodec.HEVC, audio=MediaCodec.AAC), ("mp4", "document")),
        (video("v", MediaCodec.HEVC), ("mp4", "document")),
        (video("v", MediaCodec.AVC), ("mp4", "video")),
        (video("v", MediaCodec.WEBP), ("webp", "video")),
        (audio("a", MediaCodec.MP3), ("mp3", "audio")),
        (audio("a", MediaCodec.AAC), ("m4a", "audio")),
        (audio("a", MediaCodec.FLAC), ("flac", "document")),
        (audio("a", MediaCodec.VORBIS), ("oga", "document")),
        (audio("a", MediaCodec.OPUS), ("webm", "document")),
        (video("v", MediaCodec.VP9, audio=MediaCodec.OPUS), ("webm", "document")),
    ],
)
def test_format_info(fmt, expected):
    assert fmt.get_format_info() == expected


def test_file_name_for_tagged_audio():
    fmt = audio("a", MediaCodec.MP3)
    fmt.title = "A/B"
    fmt.artist = "C/D"
    assert fmt.get_file_name() == "C D - A B.mp3"


def test_file_name_random_otherwise():
    fmt = video("v")
    first = fmt.get_file_name()
    second = fmt.get_file_name()
    assert re.fullmatch(r"[0-9a-f]{32}\.mp4", first)
    assert first != second


def test_downloaded_media_and_response_hold_values():
    media = make_media()
    downloaded = DownloadedMedia(file_path="out.mp4", media=media, index=2)
    response = ExtractorResponse(media_list=[media], url="https://example.com/r")
    assert downloaded.media is media
    assert downloaded.thumbnail_file_path == ""
    assert downloaded.index == 2
    assert response.media_list == [media]
    assert response.url == "https://example.com/r"