"""Media items, their available formats and the extractors that produce them."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from govdl.config import DownloadConfig

FILE_TYPE_DOCUMENT = "document"
FILE_TYPE_PHOTO = "photo"
FILE_TYPE_VIDEO = "video"
FILE_TYPE_AUDIO = "audio"

FILE_EXT_MP4 = "mp4"
FILE_EXT_WEBM = "webm"
FILE_EXT_MP3 = "mp3"
FILE_EXT_M4A = "m4a"
FILE_EXT_FLAC = "flac"
FILE_EXT_OGG = "oga"
FILE_EXT_JPEG = "jpeg"
FILE_EXT_WEBP = "webp"


class MediaType(str, Enum):
    """Kind of content a format carries."""

    VIDEO = "video"
    AUDIO = "audio"
    PHOTO = "photo"


class MediaCodec(str, Enum):
    """Codecs a format's video or audio stream may use."""

    AVC = "avc"
    HEVC = "hevc"
    AV1 = "av1"
    VP9 = "vp9"
    VP8 = "vp8"
    WEBP = "webp"
    AAC = "aac"
    OPUS = "opus"
    MP3 = "mp3"
    FLAC = "flac"
    VORBIS = "vorbis"


_CODEC_PRIORITY = {
    MediaCodec.AVC: 1,
    MediaCodec.HEVC: 2,
    MediaCodec.MP3: 3,
    MediaCodec.AAC: 4,
}

_TYPE_PRIORITY = {
    MediaType.VIDEO: 1,
    MediaType.AUDIO: 2,
    MediaType.PHOTO: 3,
}


def _codec_priority(codec: Optional[MediaCodec]) -> int:
    return _CODEC_PRIORITY.get(codec, 0) if codec is not None else 0


def _type_priority(media_type: Optional[MediaType]) -> int:
    return _TYPE_PRIORITY.get(media_type, 0) if media_type is not None else 0


# Hook run on a downloaded item after it has been saved.
Plugin = Callable[["DownloadedMedia", DownloadConfig], None]

_FORMAT_INFO = {
    (MediaCodec.AVC, MediaCodec.AAC): (FILE_EXT_MP4, FILE_TYPE_VIDEO),
    (MediaCodec.AVC, MediaCodec.MP3): (FILE_EXT_MP4, FILE_TYPE_VIDEO),
    (MediaCodec.HEVC, MediaCodec.AAC): (FILE_EXT_MP4, FILE_TYPE_DOCUMENT),
    (MediaCodec.HEVC, MediaCodec.MP3): (FILE_EXT_MP4, FILE_TYPE_DOCUMENT),
    (MediaCodec.AVC, None): (FILE_EXT_MP4, FILE_TYPE_VIDEO),
    (MediaCodec.HEVC, None): (FILE_EXT_MP4, FILE_TYPE_DOCUMENT),
    (MediaCodec.WEBP, None): (FILE_EXT_WEBP, FILE_TYPE_VIDEO),
    (None, MediaCodec.MP3): (FILE_EXT_MP3, FILE_TYPE_AUDIO),
    (None, MediaCodec.AAC): (FILE_EXT_M4A, FILE_TYPE_AUDIO),
    (None, MediaCodec.FLAC): (FILE_EXT_FLAC, FILE_TYPE_DOCUMENT),
    (None, MediaCodec.VORBIS): (FILE_EXT_OGG, FILE_TYPE_DOCUMENT),
}


@dataclass
class MediaFormat:
    """One downloadable rendition of a media item."""

    format_id: str = ""
    type: Optional[MediaType] = None
    file_id: str = ""
    video_codec: Optional[MediaCodec] = None
    audio_codec: Optional[MediaCodec] = None
    duration: int = 0
    width: int = 0
    height: int = 0
    bitrate: int = 0
    title: str = ""
    artist: str = ""
    is_default: bool = False
    segments: list[str] = field(default_factory=list)
    file_size: int = 0
    plugins: list[Plugin] = field(default_factory=list)
    url: list[str] = field(default_factory=list)
    thumbnail: list[str] = field(default_factory=list)
    download_config: Optional[DownloadConfig] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def get_format_info(self) -> tuple[str, str]:
        """Return the file extension and the kind of message to send it as."""
        if self.type is MediaType.PHOTO:
            return FILE_EXT_JPEG, FILE_TYPE_PHOTO
        return _FORMAT_INFO.get(
            (self.video_codec, self.audio_codec), (FILE_EXT_WEBM, FILE_TYPE_DOCUMENT)
        )

    def get_file_name(self) -> str:
        """Return a file name for this format, readable for tagged audio."""
        extension, _ = self.get_format_info()
        if self.type is MediaType.AUDIO and self.title and self.artist:
            artist = self.artist.replace("/", " ")
            title = self.title.replace("/", " ")
            return f"{artist} - {title}.{extension}"
        return f"{uuid.uuid4().hex}.{extension}"


@dataclass
class Media:
    """A piece of content found at a URL, with all its formats."""

    content_id: str
    content_url: str
    extractor_code_name: str
    caption: Optional[str] = None
    nsfw: bool = False
    format: Optional[MediaFormat] = None
    formats: list[MediaFormat] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def get_format(self, format_id: str) -> Optional[MediaFormat]:
        """Return the format with ``format_id``, or None."""
        return next((f for f in self.formats if f.format_id == format_id), None)

    def get_default_format(self) -> Optional[MediaFormat]:
        """Return the best video format, else audio, else photo."""
        return (
            self.get_default_video_format()
            or self.get_default_audio_format()
            or self.get_default_photo_format()
        )

    def get_default_video_format(self) -> Optional[MediaFormat]:
        """Pick the highest-bitrate video, preferring AVC, and mark it default."""
        candidates = [f for f in self.formats if f.video_codec is MediaCodec.AVC]
        if not candidates:
            candidates = [f for f in self.formats if f.video_codec is not None]
        if not candidates:
            return None
        best = min(candidates, key=lambda f: (-f.bitrate, -f.height))
        best.is_default = True
        return best

    def get_default_audio_format(self) -> Optional[MediaFormat]:
        """Pick the highest-bitrate audio-only format and mark it default."""
        candidates = [
            f
            for f in self.formats
            if f.video_codec is None
            and f.audio_codec in (MediaCodec.AAC, MediaCodec.MP3)
        ]
        if not candidates:
            candidates = [
                f
                for f in self.formats
                if f.video_codec is None and f.audio_codec is not None
            ]
        if not candidates:
            return None
        best = candidates[0]
        for candidate in candidates:
            if candidate.bitrate > best.bitrate:
                best = candidate
        best.is_default = True
        return best

    def get_default_photo_format(self) -> Optional[MediaFormat]:
        """Pick the first photo format and mark it default."""
        photo = next((f for f in self.formats if f.type is MediaType.PHOTO), None)
        if photo is not None:
            photo.is_default = True
        return photo

    def get_audio_from_video_format(self) -> Optional[MediaFormat]:
        """Describe an AAC audio track taken from the default video format."""
        video = self.get_default_video_format()
        if video is None:
            return None
        return MediaFormat(
            type=MediaType.AUDIO,
            format_id="AudioFromVideo",
            url=list(video.url),
            audio_codec=MediaCodec.AAC,
            thumbnail=list(video.thumbnail),
            duration=video.duration,
            title=video.title,
            artist=video.artist,
        )

    def set_caption(self, caption: str) -> None:
        """Set the caption unless it is empty."""
        if caption:
            self.caption = caption

    def add_format(self, fmt: MediaFormat) -> None:
        """Append a format to this media item."""
        self.formats.append(fmt)

    def get_sorted_formats(self) -> list[MediaFormat]:
        """Return de-duplicated formats ordered by type, codec, size and bitrate.

        Videos sharing codec and resolution keep only the highest bitrate;
        audio sharing codec and bitrate keeps only the first one seen.
        """
        videos: dict[tuple[int, int, int], MediaFormat] = {}
        for fmt in self.formats:
            if fmt.type is MediaType.VIDEO:
                key = (_codec_priority(fmt.video_codec), fmt.width, fmt.height)
                existing = videos.get(key)
                if existing is None or fmt.bitrate > existing.bitrate:
                    videos[key] = fmt

        audios: dict[tuple[int, int], MediaFormat] = {}
        for fmt in self.formats:
            if fmt.type is MediaType.AUDIO:
                key = (_codec_priority(fmt.audio_codec), fmt.bitrate)
                audios.setdefault(key, fmt)

        others = [
            f for f in self.formats if f.type not in (MediaType.VIDEO, MediaType.AUDIO)
        ]
        combined = [*videos.values(), *audios.values(), *others]

        def sort_key(fmt: MediaFormat) -> tuple[int, int, int, int, int]:
            if fmt.type is MediaType.VIDEO:
                codec = _codec_priority(fmt.video_codec)
            elif fmt.type is MediaType.AUDIO:
                codec = _codec_priority(fmt.audio_codec)
            else:
                codec = 0
            return (_type_priority(fmt.type), codec, fmt.width, fmt.height, fmt.bitrate)

        return sorted(combined, key=sort_key)

    def has_video(self) -> bool:
        return any(f.type is MediaType.VIDEO for f in self.formats)

    def has_audio(self) -> bool:
        return any(f.type is MediaType.AUDIO for f in self.formats)

    def has_photo(self) -> bool:
        return any(f.type is MediaType.PHOTO for f in self.formats)

    def supports_audio(self) -> bool:
        """True if any format carries an audio stream."""
        return any(f.audio_codec is not None for f in self.formats)

    def supports_audio_from_video(self) -> bool:
        """True if audio can only be had by extracting it from a video."""
        return not self.has_audio() and self.has_video() and self.supports_audio()


@dataclass
class DownloadedMedia:
    """A media item whose chosen format has been saved to disk."""

    file_path: str
    media: Media
    thumbnail_file_path: str = ""
    index: int = 0


@dataclass
class ExtractorResponse:
    """What an extractor found: media items, or a URL to follow instead."""

    media_list: list[Media] = field(default_factory=list)
    url: str = ""


@dataclass
class Extractor:
    """A site handler: which URLs it accepts and how it extracts media."""

    name: str
    code_name: str
    url_pattern: Optional[re.Pattern[str]] = None
    type: str = ""
    category: str = ""
    host: list[str] = field(default_factory=list)
    is_drm: bool = False
    is_redirect: bool = False
    run: Optional[Callable[..., ExtractorResponse]] = None

    def new_media(self, content_id: str, content_url: str) -> Media:
        """Create an empty media item attributed to this extractor."""
        return Media(
            content_id=content_id,
            content_url=content_url,
            extractor_code_name=self.code_name,
        )


def copy_format(fmt: MediaFormat, **changes: object) -> MediaFormat:
    """Return a shallow copy of ``fmt`` with ``changes`` applied."""
    return replace(fmt, **changes)