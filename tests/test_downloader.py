import io

import pytest
import responses

from switchdl.client import Client
from switchdl.downloader import (
    DownloadError,
    download_channel,
    download_single_video,
    download_videos,
    prepare_variants,
    process_video_download,
    resolve_video_variant,
)
from switchdl.models import DownloadConfig, VideoVariant

BASE = "https://tube.example.com"


class _Terminal(io.StringIO):
    def isatty(self):
        return True


@pytest.fixture
def rsps():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as mock:
        yield mock


@pytest.fixture
def client():
    return Client("token", base_url=BASE)


def _register_video(rsps, video_id, title, body, variants=None):
    rsps.get(f"{BASE}/api/v1/browse/videos/{video_id}", json={"id": video_id, "title": title})
    if variants is None:
        variants = [
            {"path": f"/media/{video_id}.mp4", "name": "HD", "media_type": "video/mp4"}
        ]
    rsps.get(f"{BASE}/api/v1/browse/videos/{video_id}/video_variants", json=variants)
    rsps.get(f"{BASE}/media/{video_id}.mp4", body=body)


def test_single_video_named_after_title(rsps, client, tmp_path):
    _register_video(rsps, "v1", "Talk", b"talk-bytes")
    cfg = DownloadConfig(video_ids=["v1"], output_dir=str(tmp_path))
    download_single_video(client, cfg)
    assert (tmp_path / "Talk.mp4").read_bytes() == b"talk-bytes"


def test_single_video_custom_filename(rsps, client, tmp_path):
    _register_video(rsps, "v1", "Talk", b"data")
    cfg = DownloadConfig(video_ids=["v1"], output_dir=str(tmp_path), filename="clip")
    download_single_video(client, cfg)
    assert (tmp_path / "clip.mp4").read_bytes() == b"data"
    assert not (tmp_path / "Talk.mp4").exists()


def test_single_video_without_title(rsps, client, tmp_path):
    _register_video(rsps, "v1", "", b"data")
    cfg = DownloadConfig(video_ids=["v1"], output_dir=str(tmp_path))
    download_single_video(client, cfg)
    assert (tmp_path / "video.mp4").read_bytes() == b"data"


def test_single_video_uses_given_variant(rsps, client, tmp_path):
    rsps.get(f"{BASE}/api/v1/browse/videos/v1", json={"id": "v1", "title": "Talk"})
    rsps.get(f"{BASE}/media/low.mp4", body=b"low")
    cfg = DownloadConfig(video_ids=["v1"], output_dir=str(tmp_path))
    variant = VideoVariant(path="/media/low.mp4", name="SD", media_type="video/mp4")
    download_single_video(client, cfg, variant)
    assert (tmp_path / "Talk.mp4").read_bytes() == b"low"


def test_single_video_skip_existing(rsps, client, tmp_path):
    _register_video(rsps, "v1", "Talk", b"new")
    (tmp_path / "Talk.mp4").write_bytes(b"old")
    cfg = DownloadConfig(video_ids=["v1"], output_dir=str(tmp_path), skip=True)
    download_single_video(client, cfg)
    assert (tmp_path / "Talk.mp4").read_bytes() == b"old"


def test_single_video_overwrite_existing(rsps, client, tmp_path):
    _register_video(rsps, "v1", "Talk", b"new")
    (tmp_path / "Talk.mp4").write_bytes(b"old")
    cfg = DownloadConfig(video_ids=["v1"], output_dir=str(tmp_path), overwrite=True)
    download_single_video(client, cfg)
    assert (tmp_path / "Talk.mp4").read_bytes() == b"new"


def test_single_video_existing_without_flags_fails(rsps, client, tmp_path):
    _register_video(rsps, "v1", "Talk", b"new")
    (tmp_path / "Talk.mp4").write_bytes(b"old")
    cfg = DownloadConfig(video_ids=["v1"], output_dir=str(tmp_path))
    with pytest.raises(FileExistsError, match="already exists"):
        download_single_video(client, cfg)
    assert (tmp_path / "Talk.mp4").read_bytes() == b"old"


def test_single_video_details_failure(rsps, client, tmp_path):
    rsps.get(f"{BASE}/api/v1/browse/videos/v1", status=404)
    cfg = DownloadConfig(video_ids=["v1"], output_dir=str(tmp_path))
    with pytest.raises(DownloadError, match="failed to fetch video details"):
        download_single_video(client, cfg)


def test_resolve_without_variants(rsps, client):
    rsps.get(f"{BASE}/api/v1/browse/videos/v1/video_variants", json=[])
    with pytest.raises(DownloadError, match="no video/mp4 variant found for video ID: v1"):
        resolve_video_variant(client, "v1", DownloadConfig())


def test_resolve_without_mp4_variant(rsps, client):
    rsps.get(
        f"{BASE}/api/v1/browse/videos/v1/video_variants",
        json=[{"path": "/a.webm", "name": "HD", "media_type": "video/webm"}],
    )
    with pytest.raises(DownloadError, match="no video/mp4 variant"):
        resolve_video_variant(client, "v1", DownloadConfig())


def test_resolve_picks_first_mp4(rsps, client):
    rsps.get(
        f"{BASE}/api/v1/browse/videos/v1/video_variants",
        json=[
            {"path": "/a.webm", "name": "HD", "media_type": "video/webm"},
            {"path": "/b.mp4", "name": "HD", "media_type": "video/mp4"},
            {"path": "/c.mp4", "name": "SD", "media_type": "video/mp4"},
        ],
    )
    assert resolve_video_variant(client, "v1", DownloadConfig()).path == "/b.mp4"


def test_download_videos_records_failures(rsps, client, tmp_path, capsys):
    _register_video(rsps, "v1", "One", b"one")
    rsps.get(f"{BASE}/api/v1/browse/videos/v2", status=404)
    cfg = DownloadConfig(video_ids=["v1", "v2"], output_dir=str(tmp_path))
    summary = download_videos(client, cfg)
    assert (summary.total, summary.succeeded, summary.failed) == (2, 1, 1)
    assert [r.video_id for r in summary.results] == ["v1", "v2"]
    assert summary.results[0].error is None
    assert isinstance(summary.results[1].error, DownloadError)
    out = capsys.readouterr().out
    assert "Starting download of 2 video(s)" in out
    assert "Download Summary:" in out


def test_download_single_video_batch_prints_no_summary(rsps, client, tmp_path, capsys):
    _register_video(rsps, "v1", "One", b"one")
    summary = download_videos(client, DownloadConfig(video_ids=["v1"], output_dir=str(tmp_path)))
    assert summary.succeeded == 1
    assert "Download Summary:" not in capsys.readouterr().out


def test_process_video_download_captures_error(rsps, client, tmp_path):
    rsps.get(f"{BASE}/api/v1/browse/videos/v9", status=500)
    cfg = DownloadConfig(output_dir=str(tmp_path))
    result = process_video_download(client, "v9", 0, 1, cfg, None)
    assert result.video_id == "v9"
    assert result.succeeded is False
    assert isinstance(result.error, DownloadError)


def test_prepare_variants_without_selection(client):
    cfg = DownloadConfig(video_ids=["v1"], select_variant=False)
    assert prepare_variants(client, cfg) == {}


def test_prepare_variants_best_for_all(client, monkeypatch):
    monkeypatch.setattr("sys.stdin", _Terminal("b\n"))
    cfg = DownloadConfig(video_ids=["v1", "v2"], select_variant=True)
    assert prepare_variants(client, cfg) == {}
    assert cfg.select_variant is False


def test_prepare_variants_individual(rsps, client, monkeypatch):
    rsps.get(
        f"{BASE}/api/v1/browse/videos/v1/video_variants",
        json=[
            {"path": "/hd.mp4", "name": "HD", "media_type": "video/mp4"},
            {"path": "/sd.mp4", "name": "SD", "media_type": "video/mp4"},
        ],
    )
    monkeypatch.setattr("sys.stdin", _Terminal("i\n2\n"))
    cfg = DownloadConfig(video_ids=["v1"], select_variant=True)
    chosen = prepare_variants(client, cfg)
    assert list(chosen) == ["v1"]
    assert chosen["v1"].path == "/sd.mp4"


def _register_channel(rsps, videos):
    rsps.get(f"{BASE}/api/v1/browse/channels/ch1", json={"id": "ch1", "name": "Lectures"})
    rsps.get(
        f"{BASE}/api/v1/browse/channels/ch1/videos",
        json=[{"id": vid, "title": title} for vid, title in videos],
    )


def test_download_channel_all(rsps, client, tmp_path):
    _register_channel(rsps, [("v1", "One"), ("v2", "Two")])
    _register_video(rsps, "v1", "One", b"one")
    _register_video(rsps, "v2", "Two", b"two")
    cfg = DownloadConfig(channel_id="ch1", output_dir=str(tmp_path), download_all=True)
    summary = download_channel(client, cfg)
    assert summary.succeeded == 2
    assert (tmp_path / "Lectures" / "One.mp4").read_bytes() == b"one"
    assert (tmp_path / "Lectures" / "Two.mp4").read_bytes() == b"two"


def test_download_channel_selection(rsps, client, tmp_path, monkeypatch):
    _register_channel(rsps, [("v1", "One"), ("v2", "Two")])
    _register_video(rsps, "v1", "One", b"one")
    _register_video(rsps, "v2", "Two", b"two")
    monkeypatch.setattr("sys.stdin", io.StringIO("2\n"))
    cfg = DownloadConfig(channel_id="ch1", output_dir=str(tmp_path))
    summary = download_channel(client, cfg)
    assert [r.video_id for r in summary.results] == ["v2"]
    assert not (tmp_path / "Lectures" / "One.mp4").exists()
    assert (tmp_path / "Lectures" / "Two.mp4").read_bytes() == b"two"


def test_download_channel_empty(rsps, client, tmp_path, capsys):
    _register_channel(rsps, [])
    cfg = DownloadConfig(channel_id="ch1", output_dir=str(tmp_path), download_all=True)
    assert download_channel(client, cfg) is None
    assert "No videos found in this channel." in capsys.readouterr().out
    assert not (tmp_path / "Lectures").exists()


def test_download_channel_details_failure(rsps, client, tmp_path):
    rsps.get(f"{BASE}/api/v1/browse/channels/ch1", status=404)
    cfg = DownloadConfig(channel_id="ch1", output_dir=str(tmp_path), download_all=True)
    with pytest.raises(DownloadError, match="failed to fetch channel details"):
        download_channel(client, cfg)


def test_download_channel_video_details_failure(rsps, client, tmp_path):
    _register_channel(rsps, [("v1", "One")])
    rsps.get(f"{BASE}/api/v1/browse/videos/v1", status=500)
    cfg = DownloadConfig(channel_id="ch1", output_dir=str(tmp_path), download_all=True)
    with pytest.raises(DownloadError, match="failed to fetch video details for v1"):
        download_channel(client, cfg)