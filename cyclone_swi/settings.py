"""Runtime settings for the viewer engine and the archive index builder.

Values come from the environment (or a local ``.env`` file), e.g.
``CYCLONE_VIEWER_BASE_URL=https://example.org/cyclones/``.
"""
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class ViewerSettings(BaseSettings):
    """Settings for the snapshot prefetch engine."""

    base_url: str = "http://localhost:8000/"
    index_path: str = "index.json"
    lookback_days: float = 2
    image_timeout: Optional[float] = 30.0  # seconds, None waits forever
    timestamp_unit: Literal["s", "ms"] = "s"

    class Config:
        """Model config."""
        env_file = ".env"
        env_prefix = "CYCLONE_VIEWER_"
        extra = "ignore"


class ArchiveSettings(BaseSettings):
    """Settings for building the snapshot index from the on-disk archive."""

    archive_root: Path = Path(".")
    data_dir: str = "data"
    satellite_catalog: str = "satellite_metadata.json"
    index_path: str = "index.json"
    satellite_tolerance: int = 3600  # seconds

    class Config:
        """Model config."""
        env_file = ".env"
        env_prefix = "CYCLONE_ARCHIVE_"
        extra = "ignore"
