import json
from abc import ABC, abstractmethod
from typing import TypeVar, Generic
from pathlib import Path
import httpx

T = TypeVar("T")


class BaseETL(ABC, Generic[T]):
    name: str

    def __init__(self, archive_root: Path) -> None:
        self.archive_root = archive_root

    def extract(self, source: str) -> list[dict]:
        # Fetch from a URL (synchronously) or read from the archive
        if source.startswith(("http://", "https://")):
            with httpx.Client() as client:
                response = client.get(source)
                response.raise_for_status()
                data = response.json()
        else:
            path = Path(source)
            if not path.is_absolute():
                path = self.archive_root / path
            data = json.loads(path.read_text(encoding="utf-8"))

        # Ensure the return is always a List[Dict]
        if isinstance(data, dict):
            return [data]
        elif isinstance(data, list):
            return data
        else:
            raise TypeError(f"Unexpected response type: {type(data)}")

    @abstractmethod
    def transform(self, raw_data: list[dict]) -> list[T]:
        """Clean and transform the raw data"""
        pass

    @abstractmethod
    def load(self, transformed_data: list[T]) -> None:
        """Load data into storage"""
        pass
