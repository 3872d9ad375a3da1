from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from segment_annotator.config import settings
from segment_annotator.constants import CACHE_DIRNAME, VIDEOS_CONFIG_FILENAME
from segment_annotator.models.schemas import VideoDescriptor
from segment_annotator.services.queue_store import load_config_urls
from segment_annotator.services.video_cache import VideoCache
from segment_annotator.services.video_names import resolve_video_name
from segment_annotator.utils.common import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Download or copy every video listed in videos.json into the local cache"
    )
    parser.add_argument(
        "--data-dir",
        default=settings.data_dir,
        help="Data directory holding videos.json and cache/",
    )
    parser.add_argument("--timeout", type=float, default=settings.download_timeout)
    args = parser.parse_args()

    configure_logging(settings.log_level)
    data_dir = Path(args.data_dir)
    config_path = data_dir / VIDEOS_CONFIG_FILENAME
    if not config_path.exists():
        raise SystemExit(f"{config_path} not found. Create it with a JSON array of video URLs.")

    urls = [url.strip() for url in load_config_urls(config_path) if isinstance(url, str) and url.strip()]
    if not urls:
        print("videos.json is empty. Add video URLs (or file:// paths) and run again.")
        return

    videos = [VideoDescriptor(url=url, name=resolve_video_name(url)) for url in urls]
    cache = VideoCache(data_dir / CACHE_DIRNAME, timeout=args.timeout)
    summary = asyncio.run(cache.download_all(videos))

    print(
        f"Done: {summary.cached} already cached, {summary.fetched} fetched, "
        f"{summary.failed} failed"
    )
    if summary.failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
