"""Terminal interaction: prompts, selections, the video table and download progress."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Iterable, Sequence
from datetime import date
from typing import BinaryIO

from tqdm import tqdm

from .models import DownloadConfig, VideoDetails, VideoVariant, ensure_mp4_suffix

_TABLE_PADDING = 3
_INDEX_WIDTH = 6
_TITLE_WIDTH = 15
_DURATION_WIDTH = 10

_INTEGER = re.compile(r"[+-]?[0-9]+")
_RFC3339 = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.[0-9]+)?(Z|[+-]([0-9]{2}):([0-9]{2}))"
)


class SelectionError(Exception):
    """User input could not be read, or does not name a valid choice."""


def _atoi(text: str) -> int | None:
    """Parse a plain decimal integer, or return None."""
    return int(text) if _INTEGER.fullmatch(text) else None


def is_interactive() -> bool:
    """True when standard input is a terminal."""
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


def prompt_user(prompt: str) -> str:
    """Show a prompt and return the stripped line typed; EOFError at end of input."""
    print(prompt, end="", flush=True)
    line = sys.stdin.readline()
    if not line:
        raise EOFError("end of input")
    return line.strip()


def _read_choice(prompt: str, what: str = "user input") -> str:
    try:
        return prompt_user(prompt)
    except (EOFError, OSError) as exc:
        raise SelectionError(f"failed to read {what}: {exc}") from exc


def handle_existing_output_file(output_file: str, cfg: DownloadConfig) -> str | None:
    """Decide where to write; None means the download is skipped."""
    if cfg.overwrite:
        print(f"File {output_file} already exists. Overwriting it.")
        return output_file

    try:
        os.stat(output_file)
    except FileNotFoundError:
        return output_file
    except OSError as exc:
        raise OSError(f"error checking output file {output_file}: {exc}") from exc

    if cfg.skip:
        print(f"File {output_file} already exists. Skipping download.")
        return None

    if not is_interactive():
        raise FileExistsError(
            f"output file {output_file} already exists. "
            "Use -w / --overwrite to replace it or -s / --skip to skip"
        )

    return prompt_for_file_action(output_file, cfg)


def prompt_for_file_action(output_file: str, cfg: DownloadConfig) -> str | None:
    """Ask whether to overwrite, rename or skip an existing file."""
    while True:
        choice = _read_choice(
            f"Output file {output_file} already exists.\n"
            "[O]verwrite / [R]ename / [S]kip? (o/r/s): "
        ).lower()
        if choice in ("o", "overwrite"):
            return output_file
        if choice in ("r", "rename"):
            return prompt_for_new_filename(cfg)
        if choice in ("s", "skip"):
            print("Skipping download.")
            return None
        print("Invalid choice. Please enter o, r, or s.")


def prompt_for_new_filename(cfg: DownloadConfig) -> str:
    """Ask for a file name that does not exist yet in the output directory."""
    while True:
        new_name = ensure_mp4_suffix(_read_choice("Enter new filename: ", "new filename"))
        new_path = os.path.join(cfg.output_dir, new_name)
        try:
            os.stat(new_path)
        except FileNotFoundError:
            return new_path
        except OSError:
            pass
        print(f"File {new_name} already exists. Please choose another name.")


def copy_with_progress(
    chunks: Iterable[bytes], total_size: int | None, out: BinaryIO
) -> int:
    """Write chunks to ``out`` while showing a progress bar; return the byte count."""
    known = total_size is not None and total_size > 0
    written = 0
    with tqdm(
        total=total_size if known else None,
        desc="Downloading:",
        unit="B",
        unit_scale=True,
        unit_divisor=1024,
        ascii=" =",
        file=sys.stderr,
    ) as bar:
        if not known:
            bar.set_postfix_str("(unknown size)", refresh=False)
        try:
            for chunk in chunks:
                if not chunk:
                    continue
                out.write(chunk)
                written += len(chunk)
                bar.update(len(chunk))
        except OSError as exc:
            raise OSError(f"failed to write video to file: {exc}") from exc
    name = getattr(out, "name", "output")
    print(f'Video "{name}" downloaded successfully ')
    return written


def select_variant_interactively(variants: Sequence[VideoVariant]) -> VideoVariant:
    """List the variants and ask for one by number."""
    if not variants:
        raise SelectionError("no video variants to choose from")
    print("\nAvailable video variants:")
    for number, variant in enumerate(variants, start=1):
        print(f"[{number}] {variant.name} ({variant.media_type})")

    count = len(variants)
    while True:
        idx = _atoi(_read_choice(f"\nSelect variant (1-{count}): "))
        if idx is None or not 1 <= idx <= count:
            print(f"Invalid choice. Please enter a number between 1 and {count}.")
            continue
        return variants[idx - 1]


def prompt_for_quality_selection(cfg: DownloadConfig) -> bool:
    """Ask whether to pick quality per video; False means best quality for all."""
    print("\nMultiple videos detected. How would you like to handle video quality selection?")
    while True:
        try:
            choice = prompt_user(
                "Select quality [I]ndividually for each video / "
                "Use [B]est quality for all (i/b): "
            )
        except (EOFError, OSError) as exc:
            print("Failed to read selection. Defaulting to best quality.")
            cfg.select_variant = False
            raise SelectionError(f"failed to read selection: {exc}") from exc

        choice = choice.lower()
        if choice in ("i", "individual", "individually"):
            return True
        if choice in ("b", "best"):
            print("Using best quality for all videos.")
            cfg.select_variant = False
            return False
        print("Invalid choice. Please enter 'i' or 'b'.")


def select_videos_interactively(videos: Sequence[VideoDetails]) -> list[VideoDetails]:
    """Show the videos as a table and ask which to download."""
    print("\nAvailable videos:")
    print(render_videos_table(videos), end="")
    return prompt_for_video_selection(videos)


def render_videos_table(videos: Sequence[VideoDetails]) -> str:
    """Render index, title, duration and date as aligned columns."""
    rows = [
        ["Index ", " Title ", " Duration ", " Date"],
        [
            "─" * _INDEX_WIDTH,
            "─" * _TITLE_WIDTH,
            "─" * _DURATION_WIDTH,
            "─" * _DURATION_WIDTH,
        ],
    ]
    for number, video in enumerate(videos, start=1):
        duration, published = format_video_details(video)
        rows.append([f"{number} ", f" {video.title} ", f" {duration} ", f" {published}"])

    aligned = len(rows[0]) - 1
    widths = [max(len(row[col]) for row in rows) + _TABLE_PADDING for col in range(aligned)]
    lines = [
        "".join(cell.ljust(width) for cell, width in zip(row, widths)) + row[-1]
        for row in rows
    ]
    return "\n".join(lines) + "\n"


def _trunc_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def format_video_details(video: VideoDetails) -> tuple[str, str]:
    """Return the duration as HH:MM:SS and the publication date, or "N/A"."""
    ms = video.duration_in_milliseconds
    hours = _trunc_div(ms, 3_600_000)
    total_minutes = _trunc_div(ms, 60_000)
    total_seconds = _trunc_div(ms, 1_000)
    minutes = total_minutes - 60 * _trunc_div(total_minutes, 60)
    seconds = total_seconds - 60 * _trunc_div(total_seconds, 60)
    duration = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return duration, _published_date(video.published_at)


def _published_date(value: str) -> str:
    match = _RFC3339.fullmatch(value)
    if match is None:
        return "N/A"
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    if hour > 23 or minute > 59 or second > 59:
        return "N/A"
    if match.group(7) != "Z":
        if int(match.group(8)) > 23 or int(match.group(9)) > 59:
            return "N/A"
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return "N/A"


def prompt_for_video_selection(videos: Sequence[VideoDetails]) -> list[VideoDetails]:
    """Ask for a selection such as ``1,3-5,8`` or ``all``."""
    while True:
        selection = _read_choice("\nSelect videos (1,3-5,8,...) or 'a'/'all' for all: ").strip()
        if not selection:
            print("Input cannot be empty. Please enter 'a'/'all' or a valid selection.")
            continue
        if selection.lower() in ("a", "all"):
            return list(videos)
        try:
            indices = parse_video_selection(selection, len(videos))
        except SelectionError as exc:
            print(f"Invalid selection: {exc}. Try again.")
            continue
        return [videos[idx] for idx in indices]


def parse_video_selection(selection: str, count: int) -> list[int]:
    """Turn a comma separated selection into zero-based indices, first occurrence kept."""
    chosen: dict[int, None] = {}
    for part in selection.split(","):
        for idx in parse_selection_part(part.strip(), count):
            chosen.setdefault(idx, None)
    return list(chosen)


def parse_selection_part(part: str, count: int) -> list[int]:
    """Parse one number or ``start-end`` range into zero-based indices."""
    if "-" in part:
        bounds = part.split("-")
        if len(bounds) != 2:
            raise SelectionError(f"invalid range format: {part}")
        start = _atoi(bounds[0].strip())
        end = _atoi(bounds[1].strip())
        if start is None or end is None or start < 1 or end > count or start > end:
            raise SelectionError(f"invalid range: {part}")
        return list(range(start - 1, end))

    idx = _atoi(part)
    if idx is None or not 1 <= idx <= count:
        raise SelectionError(f"invalid video number: {part}")
    return [idx - 1]