# switchdl

A command-line tool for downloading videos from SwitchTube. It fetches single
videos by their ID, or whole channels, where you either take every video or
pick the ones you want from a table.

## Installation

```
pip install switchdl
```

## Access token

SwitchTube's API needs a personal access token. Store it once:

```
switchdl configure
```

It prompts for the token and saves it. Other `configure` actions:

```
switchdl configure show       # is a token stored?
switchdl configure validate   # check the stored token against the API
switchdl configure delete     # remove the stored token
```

The token is kept in a plain file named `token` in the user configuration
directory for `switchdl`, as `platformdirs` locates it (for example
`~/.config/switchdl/token` on Linux). The file is created readable only by
you. The operating system's keyring is not used.

You can also pass a token for a single run with `--token`, or set it in the
`SWITCHDL_TOKEN` environment variable. Either one takes precedence over the
stored token, and `--token` takes precedence over the variable.

## Downloading videos

```
switchdl video 1234567890
switchdl video 1234567890 9876543210 3134859203
switchdl video 1234567890 -o /path/to/dir -f custom_name.mp4 -w -v
```

`-f/--filename` works only when you download a single video. Without it, the
file is named after the video title, with characters such as `<>:"/\|?*`
replaced by `_` and `.mp4` appended; a video without a title becomes
`video.mp4`.

When several videos are downloaded, a summary of successes and failures is
printed at the end. The command fails only if no video could be downloaded.

## Downloading channels

```
switchdl channel abcdef1234
switchdl channel abcdef1234 ghijk56789 -a
```

Without `-a/--all`, switchdl lists the channel's videos in a table (index,
title, duration, publication date) and asks which to download. Answer with
something like `1,3-5,8`, or `a`/`all` for every video. The files go into a
subdirectory of the output directory named after the channel.

## Common options

| Option | Meaning |
| --- | --- |
| `-o, --output-dir` | Output directory, created if missing (default: current directory) |
| `-s, --skip` | Skip files that already exist |
| `-w, --overwrite` | Overwrite files that already exist |
| `-v, --select-variant` | List the quality variants and ask which to use |
| `--token` | Access token for this run |

`--skip` and `--overwrite` cannot be used together. If neither is given and a
file already exists, an interactive session asks whether to overwrite,
rename or skip it; a non-interactive session stops with an error.

Without `-v`, or when input is not a terminal, the highest-quality MP4
variant is used. With `-v` and several videos, you are first asked whether to
choose the quality for each video or to use the best quality for all.

A progress bar is shown on standard error while a file downloads.

## Configuration file

Defaults for the options can go in a YAML file named `config.yaml`,
`config.yml` or `config`, either in `~/.config/switchdl/` or in the current
directory; the first one found is used. Recognised keys are `output-dir`,
`skip`, `overwrite`, `select-variant`, `all`, `filename` and `token`:

```yaml
output-dir: /home/me/Videos/switchtube
skip: true
select-variant: false
```

Paths are used as written; `~` is not expanded.

Environment variables such as `SWITCHDL_OUTPUT_DIR`, `SWITCHDL_SKIP` or
`SWITCHDL_SELECT_VARIANT` override the file, and command-line options
override both. Boolean variables count as true for `1`, `t`, `true`,
`TRUE` or `True`.

## Version

```
switchdl version
```

## Exit status

`0` on success, `1` when a command fails (the reason is printed to standard
error), `130` when interrupted.

## Using it from Python

The pieces behind the command can be used directly:

```python
from switchdl.client import Client
from switchdl.downloader import download_videos
from switchdl.models import DownloadConfig

client = Client("token")
summary = download_videos(client, DownloadConfig(video_ids=["1234567890"], skip=True))
print(summary.succeeded, summary.failed)
```

`Client` also offers `validate_token`, `fetch_video_details`,
`fetch_video_variants`, `fetch_channel_details`, `fetch_channel_videos` and
`download_file`; `switchdl.downloader.download_channel` downloads a channel
given `DownloadConfig(channel_id=...)`.

## Not included

There is no command for generating man pages.