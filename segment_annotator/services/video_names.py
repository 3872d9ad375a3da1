from __future__ import annotations

import os
import re
from urllib.parse import unquote, urlparse

from segment_annotator.utils.common import sanitize_name

_EXTENSION = re.compile(r"\.[^.]+$")


def is_local_file(url: str | None) -> bool:
    value = (url or "").strip()
    return (
        value.startswith("file://")
        or os.path.isabs(value)
        or value.startswith("./")
        or value.startswith("../")
    )


def local_file_path(url: str) -> str:
    value = url.strip()
    if value.startswith("file://"):
        return unquote(urlparse(value).path) or value[len("file://"):]
    return os.path.abspath(value)


def _join_parent_and_base(parts: list[str], fallback: str) -> str:
    base = _EXTENSION.sub("", parts[-1]) if parts else fallback
    parent = parts[-2] if len(parts) > 1 else None
    return f"{parent}/{base}" if parent else base


def resolve_video_name(url: str) -> str:
    """Derive the ``parent/base`` key shared by the queue, timestamps and cache."""
    value = (url or "").strip()
    if is_local_file(value):
        parts = [part for part in local_file_path(value).replace("\\", "/").split("/") if part]
        return _join_parent_and_base(parts, "video")

    parsed = urlparse(value)
    parts = [part for part in parsed.path.split("/") if part]
    if not parsed.scheme or not parts:
        return sanitize_name(value)
    return _join_parent_and_base(parts, "video")
