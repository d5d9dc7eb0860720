"""
Pytest configuration and fixtures for cyclone_swi tests.

HTTP traffic is served by ``httpx.MockTransport`` from an in-memory map of
paths to responses; satellite images are small PNGs generated with Pillow.
"""

import asyncio
import io
from typing import Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from PIL import Image

BASE_URL = "http://archive.test/"
NOW = 1_700_000_000  # fixed clock, epoch seconds
DAY = 24 * 60 * 60


def make_png(size=(8, 4)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (10, 20, 30)).save(buf, "PNG")
    return buf.getvalue()


def trajectory_payload(cyclone_id: str = "SWI$01/20232024", name: str = "ALVARO") -> dict:
    return {
        "cyclone_trajectory": {
            "cyclone_id": cyclone_id,
            "cyclone_name": name,
            "features": [
                {"type": "Feature", "properties": {"data_type": "analysis"}},
                {"type": "Feature", "properties": {"data_type": "analysis"}},
                {"type": "Feature", "properties": {"data_type": "forecast"}},
            ],
        }
    }


def index_entry(timestamp: int, ref: str, images: bool = False) -> dict:
    entry = {"timestamp": timestamp, "trajectory_ref": ref}
    if images:
        entry["satellite_ir108"] = {
            "file": f"satellite_images/{timestamp}/satellite_ir108.png",
            "bbox": [21.1, -41, 103, 21.1],
        }
        entry["satellite_rgb"] = {
            "file": f"satellite_images/{timestamp}/satellite_rgb_naturalenhncd.png",
            "bbox": [21.1, -41, 103, 21.1],
        }
    return entry


class FakeArchive:
    """In-memory web root served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.routes: Dict[str, Callable[[], httpx.Response]] = {}
        self.requests: List[str] = []
        self.delays: Dict[str, float] = {}
        self.gates: Dict[str, asyncio.Event] = {}

    def json(self, path: str, payload, status: int = 200) -> None:
        self.routes[path] = lambda: httpx.Response(status, json=payload)

    def png(self, path: str, data: Optional[bytes] = None) -> None:
        content = data if data is not None else make_png()
        self.routes[path] = lambda: httpx.Response(
            200, content=content, headers={"content-type": "image/png"}
        )

    def error(self, path: str, status: int = 500) -> None:
        self.routes[path] = lambda: httpx.Response(status, text="boom")

    def count(self, path: str) -> int:
        return self.requests.count(path)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.lstrip("/")
        self.requests.append(path)
        if path in self.delays:
            await asyncio.sleep(self.delays[path])
        if path in self.gates:
            await self.gates[path].wait()
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, text="not found")
        return route()


@pytest.fixture
def archive():
    return FakeArchive()


@pytest_asyncio.fixture
async def client(archive):
    async with httpx.AsyncClient(
        base_url=BASE_URL, transport=httpx.MockTransport(archive.handler)
    ) as client:
        yield client
