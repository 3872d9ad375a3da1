from __future__ import annotations

from typing import Final

VIDEO_STATUS_PENDING: Final[str] = "pending"
VIDEO_STATUS_IN_PROGRESS: Final[str] = "in_progress"
VIDEO_STATUS_COMPLETED: Final[str] = "completed"

QUEUE_ROW_ID: Final[int] = 1

DEFAULT_VIDEO_ID: Final[str] = "default"
DEFAULT_DATA_DIR: Final[str] = "data"
DEFAULT_PORT: Final[int] = 5001

VIDEOS_CONFIG_FILENAME: Final[str] = "videos.json"
QUEUE_FILENAME: Final[str] = "queue.json"
ANNOTATIONS_FILENAME: Final[str] = "db.json"
TIMESTAMPS_DIRNAME: Final[str] = "timestamps"
CACHE_DIRNAME: Final[str] = "cache"

CACHED_VIDEO_SUFFIX: Final[str] = ".mp4"
CACHED_VIDEO_MIME: Final[str] = "video/mp4"
STREAM_CHUNK_SIZE: Final[int] = 1024 * 1024

TIMESTAMPS_SOURCE_LOCAL: Final[str] = "local"
TIMESTAMPS_SOURCE_DATABASE: Final[str] = "database"

REDIS_KEY_PREFIX: Final[str] = "annotator"
REDIS_ANNOTATION_IDS_KEY: Final[str] = f"{REDIS_KEY_PREFIX}:annotations"
REDIS_ANNOTATION_KEY_PREFIX: Final[str] = f"{REDIS_KEY_PREFIX}:annotation"

SORT_BY_START_TIME: Final[str] = "startTime"

INTENTS: Final[tuple[tuple[str, str], ...]] = (
    ("Able to See", "Patient can read or see the target clearly"),
    ("Unable to See", "Patient cannot read or see the target"),
    ("Blurry", "Patient reports blurred or unclear vision"),
    ("Not Sure", "Patient is uncertain or hesitant about what they see"),
    ("Flip 1", "First lens flip comparison during refraction"),
    ("Flip 2", "Second lens flip comparison during refraction"),
    ("Red", "Patient reports red is clearer (duochrome test)"),
    ("Green", "Patient reports green is clearer (duochrome test)"),
    ("Hesitation", "Patient pauses or hesitates before responding"),
    ("Both Same", "Patient reports both options look the same"),
    ("Repeat", "Patient or doctor requests to repeat the test or question"),
)

EXPORT_CSV_FIELDS: Final[tuple[str, ...]] = (
    "id",
    "videoId",
    "startTime",
    "endTime",
    "intent",
    "text",
    "createdAt",
)
