import asyncio
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from segment_annotator.errors import UpstreamFetchFailure
from segment_annotator.models.schemas import VideoDescriptor
from segment_annotator.services.video_cache import VideoCache


def descriptor(url, name):
    return VideoDescriptor(url=url, name=name, status="pending")


def test_local_file_is_copied_once(tmp_path):
    source = tmp_path / "media" / "clip.mp4"
    source.parent.mkdir()
    source.write_bytes(b"video-bytes")
    cache = VideoCache(tmp_path / "cache")

    summary = asyncio.run(cache.download_all([descriptor(source.as_uri(), "media/clip")]))
    assert (summary.fetched, summary.failed) == (1, 0)
    assert (tmp_path / "cache" / "media" / "clip.mp4").read_bytes() == b"video-bytes"

    again = asyncio.run(cache.download_all([descriptor(source.as_uri(), "media/clip")]))
    assert (again.cached, again.fetched) == (1, 0)
    assert cache.status(["media/clip", "media/other"])[1].downloaded is False


def test_missing_local_file_is_reported(tmp_path):
    cache = VideoCache(tmp_path / "cache")
    summary = asyncio.run(cache.download_all([descriptor(str(tmp_path / "nope.mp4"), "x/nope")]))
    assert summary.failed == 1
    assert summary.remote_failed is False
    assert not cache.is_cached("x/nope")


def test_remote_download_streams_into_cache(tmp_path):
    def handler(request):
        if request.url.path.endswith("good.mp4"):
            return httpx.Response(200, content=b"remote-bytes")
        return httpx.Response(404)

    cache = VideoCache(tmp_path / "cache")

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            assert await cache.ensure_cached(descriptor("https://host/a/good.mp4", "a/good"), client)
            with pytest.raises(UpstreamFetchFailure):
                await cache.ensure_cached(descriptor("https://host/a/bad.mp4", "a/bad"), client)

    asyncio.run(scenario())
    assert (tmp_path / "cache" / "a" / "good.mp4").read_bytes() == b"remote-bytes"
    assert not (tmp_path / "cache" / "a" / "bad.mp4").exists()


def test_names_outside_cache_have_no_path(tmp_path):
    cache = VideoCache(tmp_path / "cache")
    assert cache.path_for("../../etc/passwd") is None
    assert cache.path_for("") is None
