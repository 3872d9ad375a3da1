from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import httpx

from segment_annotator.constants import CACHED_VIDEO_SUFFIX
from segment_annotator.errors import UpstreamFetchFailure
from segment_annotator.models.schemas import VideoCacheStatus, VideoDescriptor
from segment_annotator.services.video_names import is_local_file, local_file_path
from segment_annotator.utils.common import megabytes, within_directory

logger = logging.getLogger(__name__)


@dataclass
class DownloadSummary:
    cached: int = 0
    fetched: int = 0
    failed: int = 0
    remote_failed: bool = False


class VideoCache:
    """Local copies of queued videos under ``cache/<parent>/<base>.mp4``."""

    def __init__(self, root: Path, timeout: float = 60.0) -> None:
        self.root = Path(root)
        self.timeout = timeout

    def path_for(self, name: str) -> Path | None:
        path = self.root / f"{name}{CACHED_VIDEO_SUFFIX}"
        if not name or not within_directory(self.root, path):
            return None
        return path

    def cached_size(self, name: str) -> int:
        path = self.path_for(name)
        if path is None or not path.is_file():
            return 0
        return path.stat().st_size

    def is_cached(self, name: str) -> bool:
        return self.cached_size(name) > 0

    def status(self, names: Iterable[str]) -> list[VideoCacheStatus]:
        statuses = []
        for name in names:
            size = self.cached_size(name)
            statuses.append(VideoCacheStatus(name=name, downloaded=size > 0, size=size))
        return statuses

    async def ensure_cached(self, video: VideoDescriptor, client: httpx.AsyncClient) -> bool:
        """Fetch one video into the cache; returns False when it was already there."""
        dest = self.path_for(video.name)
        if dest is None:
            raise UpstreamFetchFailure(video.name, "name escapes the cache directory")
        if self.is_cached(video.name):
            logger.info("%s (cached, %s)", video.name, megabytes(self.cached_size(video.name)))
            return False

        dest.parent.mkdir(parents=True, exist_ok=True)
        if is_local_file(video.url):
            source = Path(local_file_path(video.url))
            if not source.is_file():
                raise UpstreamFetchFailure(video.name, f"local file not found: {source}")
            logger.info("Copying %s from local file", video.name)
            try:
                await asyncio.to_thread(shutil.copyfile, source, dest)
            except OSError as exc:
                dest.unlink(missing_ok=True)
                raise UpstreamFetchFailure(video.name, str(exc)) from exc
        else:
            logger.info("Downloading %s", video.name)
            await self._download(video, dest, client)

        logger.info("%s (%s)", video.name, megabytes(self.cached_size(video.name)))
        return True

    async def _download(
        self, video: VideoDescriptor, dest: Path, client: httpx.AsyncClient
    ) -> None:
        try:
            async with client.stream("GET", video.url) as response:
                if response.status_code != 200:
                    raise UpstreamFetchFailure(
                        video.name, f"HTTP {response.status_code} for {video.url}"
                    )
                with open(dest, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
        except UpstreamFetchFailure:
            dest.unlink(missing_ok=True)
            raise
        except (httpx.HTTPError, OSError) as exc:
            dest.unlink(missing_ok=True)
            raise UpstreamFetchFailure(video.name, str(exc)) from exc

    async def download_all(self, videos: list[VideoDescriptor]) -> DownloadSummary:
        summary = DownloadSummary()
        if not videos:
            return summary

        logger.info("Checking %s videos for local cache", len(videos))
        async with httpx.AsyncClient(follow_redirects=True, timeout=self.timeout) as client:
            for video in videos:
                try:
                    fetched = await self.ensure_cached(video, client)
                except UpstreamFetchFailure as exc:
                    logger.error("Failed to cache %s: %s", exc.name, exc.reason)
                    summary.failed += 1
                    if not is_local_file(video.url):
                        summary.remote_failed = True
                    continue
                if fetched:
                    summary.fetched += 1
                else:
                    summary.cached += 1

        logger.info(
            "Video cache check complete: %s cached, %s fetched, %s failed",
            summary.cached,
            summary.fetched,
            summary.failed,
        )
        if summary.remote_failed:
            logger.warning(
                "Remote downloads failed; list local paths in videos.json "
                '(e.g. ["file:///abs/path/video.mp4", "./relative/video.mp4"]) '
                "or place .mp4 files under %s using the queue names",
                self.root,
            )
        return summary
