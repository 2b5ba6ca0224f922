"""HTTP client for the SwitchTube REST API."""

from __future__ import annotations

import os
from typing import Any

import requests

from .models import (
    SWITCHTUBE_BASE_URL,
    ChannelDetails,
    ChannelVideo,
    VideoDetails,
    VideoVariant,
)
from .ui import copy_with_progress

_DOWNLOAD_CHUNK_SIZE = 64 * 1024


class APIError(Exception):
    """A request to the API failed or returned something unexpected."""


class InvalidTokenError(APIError):
    """The API rejected the access token."""


def _content_length(value: str | None) -> int:
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def _json_list(data: Any) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    return data


class Client:
    """Talks to one SwitchTube instance on behalf of one access token."""

    def __init__(
        self,
        access_token: str,
        base_url: str = SWITCHTUBE_BASE_URL,
        session: requests.Session | None = None,
    ) -> None:
        self.access_token = access_token
        self.base_url = base_url
        self.session = session if session is not None else requests.Session()

    def _api_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Token {self.access_token}",
            "Accept": "application/json",
        }

    def validate_token(self) -> None:
        """Check the token against the profile endpoint; raise if it is not accepted."""
        url = f"{self.base_url}/api/v1/profiles/me"
        try:
            response = self.session.get(url, headers=self._api_headers())
        except requests.RequestException as exc:
            raise APIError(f"failed to send validation request: {exc}") from exc
        with response:
            status = response.status_code
        if status == 200:
            return
        if status in (401, 403):
            raise InvalidTokenError(f"access token is invalid or expired (HTTP {status})")
        raise APIError(f"unexpected API response: HTTP {status}")

    def get_json(self, url: str) -> Any:
        """GET an authenticated API URL and return the decoded JSON body."""
        try:
            response = self.session.get(url, headers=self._api_headers())
        except requests.RequestException as exc:
            raise APIError(f"failed to do request: {exc}") from exc
        with response:
            if response.status_code != 200:
                raise APIError(f"unexpected status code: {response.status_code}")
            try:
                return response.json()
            except ValueError as exc:
                raise APIError(f"failed to decode response: {exc}") from exc

    def _fetch(self, url: str, what: str, parse):
        try:
            return parse(self.get_json(url))
        except ValueError as exc:
            raise APIError(f"fetch {what} failed: failed to decode response: {exc}") from exc
        except APIError as exc:
            raise APIError(f"fetch {what} failed: {exc}") from exc

    def fetch_video_details(self, video_id: str) -> VideoDetails:
        url = f"{self.base_url}/api/v1/browse/videos/{video_id}"
        return self._fetch(url, "video details", VideoDetails.from_json)

    def fetch_video_variants(self, video_id: str) -> list[VideoVariant]:
        url = f"{self.base_url}/api/v1/browse/videos/{video_id}/video_variants"
        return self._fetch(
            url,
            "video variants",
            lambda data: [VideoVariant.from_json(item) for item in _json_list(data)],
        )

    def fetch_channel_details(self, channel_id: str) -> ChannelDetails:
        url = f"{self.base_url}/api/v1/browse/channels/{channel_id}"
        return self._fetch(url, "channel details", ChannelDetails.from_json)

    def fetch_channel_videos(self, channel_id: str) -> list[ChannelVideo]:
        url = f"{self.base_url}/api/v1/browse/channels/{channel_id}/videos"
        return self._fetch(
            url,
            "channel videos",
            lambda data: [ChannelVideo.from_json(item) for item in _json_list(data)],
        )

    def download_file(self, download_url: str, output_file: str | os.PathLike[str]) -> int:
        """Stream a file to disk with a progress bar; return the number of bytes written."""
        try:
            response = self.session.get(download_url, stream=True)
        except requests.RequestException as exc:
            raise APIError(f"failed to download video: {exc}") from exc
        with response:
            if response.status_code != 200:
                raise APIError(
                    f"unexpected status code for download: {response.status_code}"
                )
            total_size = _content_length(response.headers.get("Content-Length"))
            try:
                out = open(output_file, "wb")
            except OSError as exc:
                raise OSError(f"failed to create output file: {exc}") from exc
            with out:
                try:
                    return copy_with_progress(
                        response.iter_content(chunk_size=_DOWNLOAD_CHUNK_SIZE),
                        total_size,
                        out,
                    )
                except requests.RequestException as exc:
                    raise APIError(f"failed to download video: {exc}") from exc