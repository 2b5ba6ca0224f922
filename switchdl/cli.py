"""Command line interface: ``switchdl video``, ``channel``, ``configure`` and ``version``."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable, Mapping
from importlib import metadata
from pathlib import Path
from typing import Any

import yaml

from .client import APIError, Client, InvalidTokenError
from .downloader import DownloadError, download_channel, download_videos
from .models import DEFAULT_DIRECTORY_PERMISSIONS, DownloadConfig
from .tokenstore import (
    TokenNotFoundError,
    TokenStore,
    TokenStoreError,
    default_store,
    delete_access_token,
    get_access_token,
    set_access_token,
)
from .ui import SelectionError

PROG = "switchdl"
CONFIG_NAME = "config"
ENV_PREFIX = "SWITCHDL"

_BOOL_KEYS = ("skip", "overwrite", "select-variant", "all")
_STRING_KEYS = ("output-dir", "filename", "token")
_SETTING_KEYS = _BOOL_KEYS + _STRING_KEYS
_CONFIG_EXTENSIONS = (".yaml", ".yml", "")
_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}


class CliError(Exception):
    """A command was used wrongly or could not finish."""


def _program_version() -> str:
    try:
        return metadata.version(PROG)
    except metadata.PackageNotFoundError:
        return "dev"


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-o", "--output-dir", dest="output_dir", default=argparse.SUPPRESS,
        help="Output directory path (default: .)",
    )
    parser.add_argument(
        "-s", "--skip", action="store_true", default=argparse.SUPPRESS,
        help="Skip existing files",
    )
    parser.add_argument(
        "-w", "--overwrite", action="store_true", default=argparse.SUPPRESS,
        help="Force overwrite of existing files",
    )
    parser.add_argument(
        "-v", "--select-variant", dest="select_variant", action="store_true",
        default=argparse.SUPPRESS,
        help="List all video variants (quality) and prompt for selection",
    )
    parser.add_argument(
        "--token", default=argparse.SUPPRESS,
        help="Access token for API authentication (overrides configured token)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; options left out are absent from the namespace."""
    common = argparse.ArgumentParser(add_help=False)
    _add_common_options(common)

    parser = argparse.ArgumentParser(
        prog=PROG,
        description="A CLI tool for downloading videos from SwitchTube",
        parents=[common],
    )
    commands = parser.add_subparsers(dest="command", metavar="<command>")

    video = commands.add_parser(
        "video",
        parents=[common],
        help="Download one or more videos specified by their id",
        description="Download one or more videos specified by their id.",
    )
    video.add_argument("ids", nargs="+", metavar="id", help="Video id")
    video.add_argument(
        "-f", "--filename", default=argparse.SUPPRESS,
        help="Output filename (defaults to video title)",
    )

    channel = commands.add_parser(
        "channel",
        parents=[common],
        help="Download videos from one or multiple channels",
        description=(
            "Download videos from one or more SwitchTube channels by providing their "
            "unique channel IDs. You can either download all videos at once or select "
            "which ones specifically."
        ),
    )
    channel.add_argument("ids", nargs="+", metavar="id", help="Channel id")
    channel.add_argument(
        "-a", "--all", dest="all", action="store_true", default=argparse.SUPPRESS,
        help="Download all videos without prompting",
    )

    configure = commands.add_parser(
        "configure",
        parents=[common],
        help="Manage your SwitchTube access token",
        description=(
            "Set, show, validate, or delete your SwitchTube access token. "
            "Without an action, prompts for a new token and stores it."
        ),
    )
    actions = configure.add_subparsers(dest="action", metavar="<action>")
    actions.add_parser(
        "show", parents=[common], help="Check if an access token is currently stored"
    )
    actions.add_parser(
        "validate", parents=[common],
        help="Validate the stored access token with the SwitchTube API",
    )
    actions.add_parser("delete", parents=[common], help="Delete the stored access token")

    commands.add_parser("version", help="Show the version of switchdl")
    return parser


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip() in _TRUE_WORDS
    return False


def _coerce(key: str, value: Any) -> Any:
    if key in _BOOL_KEYS:
        return _to_bool(value)
    return "" if value is None else str(value)


def _find_config_file(search_paths: Iterable[str | os.PathLike[str]]) -> Path | None:
    for directory in search_paths:
        for extension in _CONFIG_EXTENSIONS:
            candidate = Path(directory) / f"{CONFIG_NAME}{extension}"
            if candidate.is_file():
                return candidate
    return None


def _read_config(path: Path) -> dict[str, Any] | None:
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError):
        return None
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        return None
    return {str(key).lower(): value for key, value in loaded.items()}


def load_settings(
    environ: Mapping[str, str] | None = None,
    search_paths: Iterable[str | os.PathLike[str]] | None = None,
) -> dict[str, Any]:
    """Read settings from the first config file found, then from SWITCHDL_* variables."""
    environ = os.environ if environ is None else environ
    if search_paths is None:
        search_paths = [Path.home() / ".config" / PROG, Path.cwd()]

    settings: dict[str, Any] = {}
    path = _find_config_file(search_paths)
    if path is not None:
        data = _read_config(path)
        if data is not None:
            print(f"Using config file: {path}", file=sys.stderr)
            settings.update(
                (key, _coerce(key, data[key])) for key in _SETTING_KEYS if key in data
            )

    for key in _SETTING_KEYS:
        value = environ.get(f"{ENV_PREFIX}_{key.upper().replace('-', '_')}", "")
        if value != "":
            settings[key] = _coerce(key, value)
    return settings


def build_download_config(
    args: argparse.Namespace,
    settings: Mapping[str, Any],
    store: TokenStore | None = None,
) -> DownloadConfig:
    """Merge flags over settings, resolve the token and create the output directory."""

    def pick(attr: str, key: str, default: Any) -> Any:
        if hasattr(args, attr):
            return getattr(args, attr)
        return settings.get(key, default)

    cfg = DownloadConfig(
        output_dir=str(pick("output_dir", "output-dir", ".")),
        skip=bool(pick("skip", "skip", False)),
        overwrite=bool(pick("overwrite", "overwrite", False)),
        select_variant=bool(pick("select_variant", "select-variant", False)),
        download_all=bool(pick("all", "all", False)),
        filename=str(pick("filename", "filename", "")),
    )

    if cfg.overwrite and cfg.skip:
        raise CliError("cannot use --overwrite (-w) and --skip (-s) flags together")

    try:
        cfg.access_token = get_access_token(str(pick("token", "token", "")), store)
    except TokenStoreError as exc:
        raise CliError(str(exc)) from exc

    try:
        os.makedirs(cfg.output_dir, mode=DEFAULT_DIRECTORY_PERMISSIONS, exist_ok=True)
    except OSError as exc:
        raise CliError(f"cannot create output directory {cfg.output_dir}: {exc}") from exc
    return cfg


def _run_video(args: argparse.Namespace, settings: Mapping[str, Any], store: TokenStore) -> None:
    cfg = build_download_config(args, settings, store)
    if cfg.filename and len(args.ids) > 1:
        raise CliError(
            "custom filename (-f/--filename) can only be used when downloading a single video"
        )
    cfg.video_ids = list(args.ids)
    summary = download_videos(Client(cfg.access_token), cfg)
    if summary.succeeded == 0:
        raise CliError("failed to download any videos")


def _run_channel(
    args: argparse.Namespace, settings: Mapping[str, Any], store: TokenStore
) -> None:
    cfg = build_download_config(args, settings, store)
    client = Client(cfg.access_token)
    for channel_id in args.ids:
        cfg.channel_id = channel_id
        download_channel(client, cfg)


def _configure_set(store: TokenStore) -> None:
    print("Enter your SwitchTube access token: ", end="", flush=True)
    line = sys.stdin.readline()
    if not line.endswith("\n"):
        raise CliError("failed to read token: EOF")
    set_access_token(line.strip(), store)
    print("Access token successfully saved.")


def _configure_show(store: TokenStore) -> None:
    try:
        store.get()
    except TokenNotFoundError:
        print("No access token is currently stored.")
        return
    except TokenStoreError as exc:
        raise CliError(f"failed to check token status: {exc}") from exc
    print("An access token is currently stored.")


def _configure_validate(store: TokenStore) -> None:
    try:
        token = get_access_token("", store)
    except TokenStoreError as exc:
        raise CliError(str(exc)) from exc
    try:
        Client(token).validate_token()
    except APIError as exc:
        print(exc)
        if isinstance(exc, InvalidTokenError):
            print("Please run 'switchdl configure' to update it.")
        return
    print("Access token is valid.")


def _configure_delete(store: TokenStore) -> None:
    delete_access_token(store)
    print("Access token successfully deleted or was not found.")


def _run_configure(args: argparse.Namespace, store: TokenStore) -> None:
    action = getattr(args, "action", None)
    handlers = {
        None: _configure_set,
        "show": _configure_show,
        "validate": _configure_validate,
        "delete": _configure_delete,
    }
    handlers[action](store)


def main(argv: list[str] | None = None) -> int:
    """Run the command line; return the process exit status."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else (0 if exc.code is None else 1)

    if args.command is None:
        parser.print_help()
        return 0

    settings = load_settings()

    if args.command == "version":
        print(f"{PROG} {_program_version()}")
        return 0

    store = default_store()
    try:
        if args.command == "video":
            _run_video(args, settings, store)
        elif args.command == "channel":
            _run_channel(args, settings, store)
        else:
            _run_configure(args, store)
    except (
        CliError,
        DownloadError,
        APIError,
        TokenStoreError,
        SelectionError,
        OSError,
        ValueError,
    ) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())