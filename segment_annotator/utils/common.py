from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def ensure_dir(path: str | Path) -> Path:
    resolved = Path(path)
    resolved.mkdir(parents=True, exist_ok=True)
    return resolved


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def sanitize_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_/-]", "_", name)


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid time value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def format_seconds(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def within_directory(root: Path, candidate: Path) -> bool:
    real_root = root.resolve(strict=False)
    real_candidate = candidate.resolve(strict=False)
    return real_candidate == real_root or real_root in real_candidate.parents


def megabytes(size: int) -> str:
    return f"{size / 1024 / 1024:.1f} MB"
