from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from segment_annotator.constants import (
    ANNOTATIONS_FILENAME,
    CACHE_DIRNAME,
    DEFAULT_DATA_DIR,
    DEFAULT_PORT,
    QUEUE_FILENAME,
    TIMESTAMPS_DIRNAME,
    VIDEOS_CONFIG_FILENAME,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    data_dir: str = DEFAULT_DATA_DIR
    database_url: str | None = None
    redis_url: str | None = None
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    cors_origins: list[str] = ["*"]
    revalidate_updates: bool = False
    download_on_startup: bool = True
    download_timeout: float = 60.0
    log_level: str = "INFO"

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def videos_config_path(self) -> Path:
        return self.data_path / VIDEOS_CONFIG_FILENAME

    @property
    def queue_path(self) -> Path:
        return self.data_path / QUEUE_FILENAME

    @property
    def annotations_path(self) -> Path:
        return self.data_path / ANNOTATIONS_FILENAME

    @property
    def timestamps_dir(self) -> Path:
        return self.data_path / TIMESTAMPS_DIRNAME

    @property
    def cache_dir(self) -> Path:
        return self.data_path / CACHE_DIRNAME


settings = Settings()
