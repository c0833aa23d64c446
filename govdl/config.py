"""Configuration records for downloads, extractors and the edge proxy."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from http.cookiejar import Cookie
from typing import Callable, Optional

_DEFAULT_CHUNK_SIZE = 10 * 1024 * 1024  # 10MB
_DEFAULT_CONCURRENCY = 4
_DEFAULT_TIMEOUT = 30.0
_DEFAULT_RETRY_ATTEMPTS = 3
_DEFAULT_RETRY_DELAY = 2.0
_DEFAULT_MAX_IN_MEMORY = 50 * 1024 * 1024  # 50MB


def _default_download_dir() -> str:
    return os.environ.get("DOWNLOADS_DIR") or "downloads"


@dataclass
class DownloadConfig:
    """Settings for a single download; times are in seconds."""

    chunk_size: int = _DEFAULT_CHUNK_SIZE
    concurrency: int = _DEFAULT_CONCURRENCY
    timeout: float = _DEFAULT_TIMEOUT
    download_dir: str = field(default_factory=_default_download_dir)
    retry_attempts: int = _DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = _DEFAULT_RETRY_DELAY
    remux: bool = True
    progress_updater: Optional[Callable[[float], None]] = None
    max_in_memory: int = _DEFAULT_MAX_IN_MEMORY
    headers: dict[str, str] = field(default_factory=dict)
    cookies: list[Cookie] = field(default_factory=list)

    def ensure(self) -> None:
        """Replace missing or non-positive settings with their defaults."""
        if self.chunk_size <= 0:
            self.chunk_size = _DEFAULT_CHUNK_SIZE
        if self.concurrency <= 0:
            self.concurrency = _DEFAULT_CONCURRENCY
        if self.timeout <= 0:
            self.timeout = _DEFAULT_TIMEOUT
        if not self.download_dir:
            self.download_dir = _default_download_dir()
        if self.retry_attempts <= 0:
            self.retry_attempts = _DEFAULT_RETRY_ATTEMPTS
        if self.retry_delay <= 0:
            self.retry_delay = _DEFAULT_RETRY_DELAY
        if self.max_in_memory <= 0:
            self.max_in_memory = _DEFAULT_MAX_IN_MEMORY
        if self.headers is None:
            self.headers = {}
        if self.cookies is None:
            self.cookies = []


def default_download_config() -> DownloadConfig:
    """Return a fresh configuration holding only default values."""
    return DownloadConfig()


def get_download_config(config: Optional[DownloadConfig]) -> DownloadConfig:
    """Return ``config`` with defaults filled in, or a default one if it is None."""
    if config is None:
        return default_download_config()
    config.ensure()
    return config


@dataclass
class ExtractorConfig:
    """Per-extractor network settings."""

    http_proxy: str = ""
    https_proxy: str = ""
    no_proxy: str = ""
    edge_proxy_url: str = ""
    impersonate: bool = False
    is_disabled: bool = False
    instance: str = ""


@dataclass
class EdgeProxyResponse:
    """The JSON body returned by an edge proxy for a forwarded request."""

    url: str = ""
    status_code: int = 0
    text: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    cookies: list[str] = field(default_factory=list)