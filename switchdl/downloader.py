"""Downloading single videos, batches of videos and whole channels."""

from __future__ import annotations

import os

from .client import APIError, Client
from .models import (
    DEFAULT_DIRECTORY_PERMISSIONS,
    DownloadConfig,
    DownloadResult,
    DownloadSummary,
    VideoVariant,
    ensure_mp4_suffix,
    format_download_summary,
    sanitize_filename,
    select_best_variant,
)
from .ui import (
    SelectionError,
    handle_existing_output_file,
    is_interactive,
    prompt_for_quality_selection,
    select_variant_interactively,
    select_videos_interactively,
)

_DEFAULT_VIDEO_FILENAME = "video.mp4"


class DownloadError(Exception):
    """A video or channel could not be downloaded."""


def _output_filename(cfg: DownloadConfig, title: str) -> str:
    if cfg.filename:
        return ensure_mp4_suffix(cfg.filename)
    if title:
        return ensure_mp4_suffix(sanitize_filename(title))
    return _DEFAULT_VIDEO_FILENAME


def download_single_video(
    client: Client, cfg: DownloadConfig, variant: VideoVariant | None = None
) -> None:
    """Download the first video of ``cfg.video_ids`` into ``cfg.output_dir``."""
    video_id = cfg.video_ids[0]

    try:
        details = client.fetch_video_details(video_id)
    except APIError as exc:
        raise DownloadError(f"failed to fetch video details: {exc}") from exc

    if variant is None:
        variant = resolve_video_variant(client, video_id, cfg)

    filename = _output_filename(cfg, details.title)
    print(f'Downloading video "{filename}"')

    output_file = handle_existing_output_file(os.path.join(cfg.output_dir, filename), cfg)
    if output_file is None:
        return

    client.download_file(client.base_url + variant.path, output_file)


def resolve_video_variant(client: Client, video_id: str, cfg: DownloadConfig) -> VideoVariant:
    """Pick the variant to download, asking the user when requested."""
    variants = client.fetch_video_variants(video_id)
    if not variants:
        raise DownloadError(f"no video/mp4 variant found for video ID: {video_id}")

    if cfg.select_variant and is_interactive() and len(variants) > 1:
        return select_variant_interactively(variants)

    best = select_best_variant(variants)
    if best is None:
        raise DownloadError(f"no video/mp4 variant found for video ID: {video_id}")
    return best


def download_videos(client: Client, cfg: DownloadConfig) -> DownloadSummary:
    """Download every video in ``cfg.video_ids``; failures are recorded, not raised."""
    summary = DownloadSummary(total=len(cfg.video_ids))
    print(f"Starting download of {summary.total} video(s)")

    chosen = prepare_variants(client, cfg)

    for index, video_id in enumerate(cfg.video_ids):
        summary.add(
            process_video_download(
                client, video_id, index, summary.total, cfg, chosen.get(video_id)
            )
        )

    if summary.total > 1:
        print(format_download_summary(summary), end="")
    return summary


def download_channel(client: Client, cfg: DownloadConfig) -> DownloadSummary | None:
    """Download all or some videos of ``cfg.channel_id`` into a channel subdirectory."""
    try:
        channel = client.fetch_channel_details(cfg.channel_id)
    except APIError as exc:
        raise DownloadError(f"failed to fetch channel details: {exc}") from exc

    try:
        channel_videos = client.fetch_channel_videos(cfg.channel_id)
    except APIError as exc:
        raise DownloadError(f"failed to fetch channel videos: {exc}") from exc

    if not channel_videos:
        print("No videos found in this channel.")
        return None

    print(f"Found {len(channel_videos)} videos in channel '{channel.name}'")

    videos = []
    for video in channel_videos:
        try:
            videos.append(client.fetch_video_details(video.id))
        except APIError as exc:
            raise DownloadError(
                f"failed to fetch video details for {video.id}: {exc}"
            ) from exc

    selected = videos if cfg.download_all else select_videos_interactively(videos)
    if not selected:
        print("No videos selected.")
        return None

    channel_dir = os.path.join(cfg.output_dir, sanitize_filename(channel.name))
    try:
        os.makedirs(channel_dir, mode=DEFAULT_DIRECTORY_PERMISSIONS, exist_ok=True)
    except OSError as exc:
        raise DownloadError(f"failed to create channel directory: {exc}") from exc
    print(f"Downloading {len(selected)} video(s) to '{channel_dir}'")

    video_cfg = DownloadConfig(
        access_token=cfg.access_token,
        output_dir=channel_dir,
        overwrite=cfg.overwrite,
        skip=cfg.skip,
        select_variant=cfg.select_variant,
        video_ids=[video.id for video in selected],
    )
    return download_videos(client, video_cfg)


def prepare_variants(client: Client, cfg: DownloadConfig) -> dict[str, VideoVariant]:
    """Ask up front for the variant of each video when the user wants to choose."""
    chosen: dict[str, VideoVariant] = {}
    if not cfg.select_variant or not is_interactive():
        return chosen

    try:
        individually = prompt_for_quality_selection(cfg)
    except SelectionError as exc:
        print(f"Warning: failed to select quality: {exc}. Using best quality.")
        cfg.select_variant = False
        return chosen

    if not individually:
        return chosen

    total = len(cfg.video_ids)
    for number, video_id in enumerate(cfg.video_ids, start=1):
        print(f"\nProcessing video {number}/{total} (ID: {video_id})")
        try:
            variants = client.fetch_video_variants(video_id)
        except APIError as exc:
            print(f"Failed to fetch variants for video {video_id}: {exc}")
            continue
        try:
            chosen[video_id] = select_variant_interactively(variants)
        except SelectionError as exc:
            print(f"Failed to select variant for video {video_id}: {exc}")
    return chosen


def process_video_download(
    client: Client,
    video_id: str,
    index: int,
    total: int,
    cfg: DownloadConfig,
    variant: VideoVariant | None = None,
) -> DownloadResult:
    """Download one video of a batch and report the outcome."""
    print(f"\nProcessing video {index + 1}/{total} (ID: {video_id})")

    video_cfg = DownloadConfig(
        access_token=cfg.access_token,
        output_dir=cfg.output_dir,
        overwrite=cfg.overwrite,
        skip=cfg.skip,
        select_variant=cfg.select_variant,
        video_ids=[video_id],
        filename=cfg.filename,
    )

    error: Exception | None = None
    try:
        download_single_video(client, video_cfg, variant)
    except (APIError, DownloadError, SelectionError, OSError, ValueError) as exc:
        print(f"Failed to download video {video_id}: {exc}")
        error = exc
    return DownloadResult(video_id=video_id, error=error)