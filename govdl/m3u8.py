"""Read HLS playlists into media formats."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union
from urllib.parse import urljoin, urlsplit

import requests

from govdl.media import MediaCodec, MediaFormat, MediaType

logger = logging.getLogger(__name__)

_FETCH_TIMEOUT = 30.0
_ATTRIBUTE = re.compile(r'([A-Z0-9-]+)=("[^"]*"|[^,]*)')
_RESOLUTION = re.compile(r"\s*([+-]?\d+)x\s*([+-]?\d+)")
_MEDIA_TAGS = (
    "#EXT-X-TARGETDURATION",
    "#EXT-X-MEDIA-SEQUENCE",
    "#EXT-X-ENDLIST",
    "#EXT-X-PLAYLIST-TYPE",
    "#EXT-X-DISCONTINUITY",
    "#EXT-X-KEY",
)


@dataclass
class _Alternative:
    type: str = ""
    group_id: str = ""
    uri: str = ""


@dataclass
class _Variant:
    uri: str = ""
    bandwidth: int = 0
    resolution: str = ""
    codecs: str = ""
    audio: str = ""
    alternatives: list[_Alternative] = field(default_factory=list)


@dataclass
class _Segment:
    uri: str
    duration: float = 0.0
    limit: int = 0


@dataclass
class _MasterPlaylist:
    variants: list[_Variant]


@dataclass
class _MediaPlaylist:
    map_uri: str
    segments: list[_Segment]


def _attributes(text: str) -> dict[str, str]:
    result = {}
    for key, value in _ATTRIBUTE.findall(text):
        if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
            value = value[1:-1]
        result[key] = value
    return result


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def _to_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def _variant(attrs: dict[str, str]) -> _Variant:
    return _Variant(
        bandwidth=_to_int(attrs.get("BANDWIDTH", "")),
        resolution=attrs.get("RESOLUTION", ""),
        codecs=attrs.get("CODECS", ""),
        audio=attrs.get("AUDIO", ""),
    )


def _decode(text: str) -> Union[_MasterPlaylist, _MediaPlaylist, None]:
    lines = [line.strip() for line in text.splitlines()]
    if not any(line.startswith("#EXTM3U") for line in lines):
        raise ValueError("#EXTM3U absent")

    is_master = is_media = False
    variants: list[_Variant] = []
    pending_alternatives: list[_Alternative] = []
    awaiting_uri: Optional[_Variant] = None
    segments: list[_Segment] = []
    map_uri = ""
    duration = 0.0
    limit = 0

    for line in lines:
        if not line:
            continue
        if line.startswith("#EXT-X-MEDIA:"):
            is_master = True
            attrs = _attributes(line[len("#EXT-X-MEDIA:"):])
            pending_alternatives.append(
                _Alternative(
                    type=attrs.get("TYPE", ""),
                    group_id=attrs.get("GROUP-ID", ""),
                    uri=attrs.get("URI", ""),
                )
            )
        elif line.startswith("#EXT-X-STREAM-INF:"):
            is_master = True
            awaiting_uri = _variant(_attributes(line[len("#EXT-X-STREAM-INF:"):]))
            awaiting_uri.alternatives, pending_alternatives = pending_alternatives, []
            variants.append(awaiting_uri)
        elif line.startswith("#EXT-X-I-FRAME-STREAM-INF:"):
            is_master = True
            attrs = _attributes(line[len("#EXT-X-I-FRAME-STREAM-INF:"):])
            variant = _variant(attrs)
            variant.uri = attrs.get("URI", "")
            variant.alternatives, pending_alternatives = pending_alternatives, []
            variants.append(variant)
        elif line.startswith("#EXTINF:"):
            is_media = True
            duration = _to_float(line[len("#EXTINF:"):].split(",", 1)[0])
        elif line.startswith("#EXT-X-BYTERANGE:"):
            is_media = True
            spec = line[len("#EXT-X-BYTERANGE:"):].split("@", 1)[0]
            try:
                limit = int(spec)
            except ValueError as exc:
                raise ValueError(f"invalid byte range {spec!r}") from exc
        elif line.startswith("#EXT-X-MAP:"):
            is_media = True
            if not map_uri and not segments:
                map_uri = _attributes(line[len("#EXT-X-MAP:"):]).get("URI", "")
        elif line.startswith(_MEDIA_TAGS):
            is_media = True
        elif line.startswith("#"):
            continue
        elif awaiting_uri is not None:
            awaiting_uri.uri = line
            awaiting_uri = None
        else:
            is_media = True
            segments.append(_Segment(line, duration, limit))
            duration = 0.0
            limit = 0

    if is_master:
        return _MasterPlaylist(variants)
    if is_media:
        return _MediaPlaylist(map_uri, segments)
    return None


def resolve_url(base: str, uri: str) -> str:
    """Resolve ``uri`` against ``base`` unless it is already absolute."""
    if uri.startswith(("http://", "https://")):
        return uri
    try:
        return urljoin(base, uri)
    except ValueError:
        return uri


def get_resolution(resolution: str) -> tuple[int, int]:
    """Split ``WIDTHxHEIGHT`` into integers, or return ``(0, 0)``."""
    match = _RESOLUTION.match(resolution)
    if match is None:
        return 0, 0
    return int(match.group(1)), int(match.group(2))


def get_video_codec(codecs: str) -> Optional[MediaCodec]:
    """Name the video codec mentioned in an HLS ``CODECS`` value."""
    if "avc" in codecs or "h264" in codecs:
        return MediaCodec.AVC
    if "hvc" in codecs or "h265" in codecs:
        return MediaCodec.HEVC
    if "av01" in codecs:
        return MediaCodec.AV1
    if "vp9" in codecs:
        return MediaCodec.VP9
    if "vp8" in codecs:
        return MediaCodec.VP8
    return None


def get_audio_codec(codecs: str) -> Optional[MediaCodec]:
    """Name the audio codec mentioned in an HLS ``CODECS`` value."""
    if "mp4a" in codecs:
        return MediaCodec.AAC
    if "opus" in codecs:
        return MediaCodec.OPUS
    if "mp3" in codecs:
        return MediaCodec.MP3
    if "flac" in codecs:
        return MediaCodec.FLAC
    if "vorbis" in codecs:
        return MediaCodec.VORBIS
    return None


def _fetch_content(url: str) -> bytes:
    try:
        response = requests.get(url, timeout=_FETCH_TIMEOUT)
    except requests.RequestException as exc:
        raise ConnectionError(f"failed to fetch content: {exc}") from exc
    with response:
        if response.status_code != 200:
            raise ConnectionError(
                f"server returned status code: {response.status_code}"
            )
        return response.content


def _alternative_codec(
    variants: list[_Variant], alternative: _Alternative
) -> Optional[MediaCodec]:
    if not alternative.uri or alternative.type != "AUDIO":
        return None
    for variant in variants:
        if not variant.uri or variant.audio != alternative.group_id:
            continue
        codec = get_audio_codec(variant.codecs)
        if codec is not None:
            return codec
    return None


def _parse_alternative(
    variants: list[_Variant], alternative: _Alternative, base_url: str
) -> Optional[MediaFormat]:
    if not alternative.uri or alternative.type != "AUDIO":
        return None
    alt_url = resolve_url(base_url, alternative.uri)
    fmt = MediaFormat(
        format_id="hls" + alternative.group_id,
        type=MediaType.AUDIO,
        audio_codec=_alternative_codec(variants, alternative),
        url=[alt_url],
    )
    try:
        content = _fetch_content(alt_url)
    except ConnectionError:
        return fmt
    try:
        alt_formats = parse_m3u8_content(content, alt_url)
    except (ValueError, ConnectionError) as exc:
        logger.warning("skipping alternative due to: %s", exc)
        return None
    if not alt_formats:
        logger.warning("skipping alternative due to: empty playlist")
        return None
    fmt.segments = alt_formats[0].segments
    if alt_formats[0].duration > 0:
        fmt.duration = alt_formats[0].duration
    return fmt


def _parse_master(playlist: _MasterPlaylist, base_url: str) -> list[MediaFormat]:
    formats: list[MediaFormat] = []
    seen_groups: set[str] = set()
    for variant in playlist.variants:
        if not variant.uri:
            continue
        for alternative in variant.alternatives:
            if alternative.group_id in seen_groups:
                continue
            seen_groups.add(alternative.group_id)
            alt_format = _parse_alternative(playlist.variants, alternative, base_url)
            if alt_format is not None:
                formats.append(alt_format)

        width, height = get_resolution(variant.resolution)
        video_codec = get_video_codec(variant.codecs)
        audio_codec = get_audio_codec(variant.codecs)
        if video_codec is not None:
            media_type: Optional[MediaType] = MediaType.VIDEO
        elif audio_codec is not None:
            media_type = MediaType.AUDIO
        else:
            media_type = None
        if variant.audio:
            audio_codec = None
        variant_url = resolve_url(base_url, variant.uri)
        fmt = MediaFormat(
            format_id=f"hls-{variant.bandwidth // 1000}",
            type=media_type,
            video_codec=video_codec,
            audio_codec=audio_codec,
            bitrate=variant.bandwidth,
            width=width,
            height=height,
            url=[variant_url],
        )
        try:
            content = _fetch_content(variant_url)
        except ConnectionError:
            continue
        try:
            variant_formats = parse_m3u8_content(content, variant_url)
        except (ValueError, ConnectionError) as exc:
            logger.warning("skipping variant due to: %s", exc)
            continue
        if not variant_formats:
            logger.warning("skipping variant due to: empty playlist")
            continue
        fmt.segments = variant_formats[0].segments
        if variant_formats[0].duration > 0:
            fmt.duration = variant_formats[0].duration
        formats.append(fmt)
    return formats


def _parse_media(playlist: _MediaPlaylist, base_url: str) -> list[MediaFormat]:
    segments: list[str] = []
    if playlist.map_uri:
        segments.append(resolve_url(base_url, playlist.map_uri))
    total = 0.0
    for segment in playlist.segments:
        if not segment.uri:
            continue
        segments.append(resolve_url(base_url, segment.uri))
        total += segment.duration
        if segment.limit > 0:
            # byte ranges are not supported
            break
    return [
        MediaFormat(
            format_id="hls",
            duration=int(total),
            url=[base_url],
            segments=segments,
        )
    ]


def parse_m3u8_content(
    content: Union[bytes, str], base_url: str
) -> list[MediaFormat]:
    """Parse a master or media playlist found at ``base_url``.

    Variant and audio playlists named by a master playlist are fetched
    to collect their segments.
    """
    try:
        _ = urlsplit(base_url).port
    except ValueError as exc:
        raise ValueError(f"invalid base url: {exc}") from exc
    text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
    try:
        playlist = _decode(text)
    except ValueError as exc:
        raise ValueError(f"failed parsing m3u8: {exc}") from exc
    if isinstance(playlist, _MasterPlaylist):
        logger.debug("detected master playlist")
        return _parse_master(playlist, base_url)
    if isinstance(playlist, _MediaPlaylist):
        logger.debug("detected media playlist")
        return _parse_media(playlist, base_url)
    raise ValueError("unsupported m3u8 playlist type")


def parse_m3u8_from_url(url: str) -> list[MediaFormat]:
    """Fetch the playlist at ``url`` and parse it."""
    try:
        content = _fetch_content(url)
    except ConnectionError as exc:
        raise ConnectionError(f"failed to fetch m3u8 content: {exc}") from exc
    return parse_m3u8_content(content, url)