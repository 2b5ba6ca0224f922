"""Data types shared by the downloader, plus small helpers for names and variants."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

SWITCHTUBE_BASE_URL = "https://tube.switch.ch"
DEFAULT_DIRECTORY_PERMISSIONS = 0o755
MAX_FILENAME_LENGTH = 255
MP4_MEDIA_TYPE = "video/mp4"

_INVALID_FILENAME_CHARS = '<>:"/\\|?*'


def _require_mapping(data: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected a JSON object for {kind}, got {type(data).__name__}")
    return data


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _integer(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} must be an integer, got {type(value).__name__}")
    return value


@dataclass
class DownloadConfig:
    """Settings for one download run."""

    access_token: str = ""
    channel_id: str = ""
    video_ids: list[str] = field(default_factory=list)
    output_dir: str = "."
    filename: str = ""
    overwrite: bool = False
    skip: bool = False
    select_variant: bool = False
    download_all: bool = False


@dataclass
class DownloadResult:
    """Outcome of downloading one video."""

    video_id: str
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class DownloadSummary:
    """Counts and per-video results of a batch of downloads."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    results: list[DownloadResult] = field(default_factory=list)

    def add(self, result: DownloadResult) -> None:
        """Record a result and update the counters."""
        if result.succeeded:
            self.succeeded += 1
        else:
            self.failed += 1
        self.results.append(result)


@dataclass(frozen=True)
class ChannelDetails:
    id: str = ""
    name: str = ""

    @classmethod
    def from_json(cls, data: Any) -> ChannelDetails:
        data = _require_mapping(data, "channel details")
        return cls(id=_text(data, "id"), name=_text(data, "name"))


@dataclass(frozen=True)
class ChannelVideo:
    id: str = ""
    title: str = ""

    @classmethod
    def from_json(cls, data: Any) -> ChannelVideo:
        data = _require_mapping(data, "channel video")
        return cls(id=_text(data, "id"), title=_text(data, "title"))


@dataclass(frozen=True)
class VideoVariant:
    """One downloadable rendition of a video; ``name`` labels the quality."""

    path: str = ""
    name: str = ""
    media_type: str = ""
    expires_at: str = ""

    @classmethod
    def from_json(cls, data: Any) -> VideoVariant:
        data = _require_mapping(data, "video variant")
        return cls(
            path=_text(data, "path"),
            name=_text(data, "name"),
            media_type=_text(data, "media_type"),
            expires_at=_text(data, "expires_at"),
        )


@dataclass(frozen=True)
class VideoDetails:
    """Metadata of a video; ``published_at`` is an RFC 3339 timestamp."""

    id: str = ""
    title: str = ""
    published_at: str = ""
    duration_in_milliseconds: int = 0

    @classmethod
    def from_json(cls, data: Any) -> VideoDetails:
        data = _require_mapping(data, "video details")
        return cls(
            id=_text(data, "id"),
            title=_text(data, "title"),
            published_at=_text(data, "published_at"),
            duration_in_milliseconds=_integer(data, "duration_in_milliseconds"),
        )


def ensure_mp4_suffix(name: str) -> str:
    """Append ``.mp4`` unless the name already ends with it."""
    return name if name.endswith(".mp4") else name + ".mp4"


def sanitize_filename(name: str) -> str:
    """Replace characters not allowed in file names, trim, and cap at 255 bytes."""
    sanitized = name.translate({ord(ch): "_" for ch in _INVALID_FILENAME_CHARS}).strip()
    encoded = sanitized.encode("utf-8")
    if len(encoded) > MAX_FILENAME_LENGTH:
        sanitized = encoded[:MAX_FILENAME_LENGTH].decode("utf-8", errors="ignore")
    return sanitized


def select_best_variant(variants: Iterable[VideoVariant]) -> VideoVariant | None:
    """Return the first MP4 variant; the API lists the highest quality first."""
    return next((v for v in variants if v.media_type == MP4_MEDIA_TYPE), None)


def format_download_summary(summary: DownloadSummary) -> str:
    """Render the end-of-batch report."""
    lines = [
        "",
        "Download Summary:",
        f"Total videos: {summary.total}",
        f"Successfully downloaded: {summary.succeeded}",
        f"Failed: {summary.failed}",
    ]
    if summary.failed > 0:
        lines += ["", "Failed downloads:"]
        lines += [
            f"- Video {result.video_id}: {result.error}"
            for result in summary.results
            if result.error is not None
        ]
    return "\n".join(lines) + "\n"