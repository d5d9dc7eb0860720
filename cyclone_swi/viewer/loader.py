import asyncio
import logging

import httpx

from cyclone_swi.models.snapshot import LoadedSnapshot, SnapshotMetadata
from cyclone_swi.viewer.errors import IndexLoadError, SnapshotLoadError

logger = logging.getLogger(__name__)


async def load_index(client: httpx.AsyncClient, path: str) -> list[SnapshotMetadata]:
    """Fetch the snapshot index and return it sorted by timestamp."""
    try:
        response = await client.get(path)
        response.raise_for_status()
        raw = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise IndexLoadError(f"Could not load index {path}: {e}") from e

    if not isinstance(raw, list):
        raise IndexLoadError(
            f"Unexpected index type {type(raw).__name__}, expected a list"
        )

    for position, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise IndexLoadError(
                f"Malformed index entry {position} in {path}: "
                f"expected an object, got {type(entry).__name__}"
            )

    try:
        metadata = [SnapshotMetadata.from_dict(entry) for entry in raw]
    except (KeyError, TypeError, ValueError) as e:
        raise IndexLoadError(f"Malformed index entry in {path}: {e!r}") from e

    timestamps = [m.timestamp for m in metadata]
    if timestamps != sorted(timestamps):
        logger.warning("Index %s is not sorted by timestamp, sorting it", path)
        metadata.sort(key=lambda m: m.timestamp)

    logger.info("Loaded %d snapshot(s) from %s", len(metadata), path)
    return metadata


class SnapshotLoader:
    """
    Fetches trajectory documents and keeps them for the whole session.

    Results are memoized by ``trajectory_ref``. Concurrent calls for the same
    reference share one in-flight request. Failures are not cached and never
    retried here; the caller decides whether to try again.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client
        self._cache: dict[str, LoadedSnapshot] = {}
        self._inflight: dict[str, asyncio.Future] = {}

    def cached(self, metadata: SnapshotMetadata) -> LoadedSnapshot | None:
        return self._cache.get(metadata.trajectory_ref)

    def __len__(self) -> int:
        return len(self._cache)

    async def fetch(self, metadata: SnapshotMetadata) -> LoadedSnapshot:
        key = metadata.trajectory_ref

        snapshot = self._cache.get(key)
        if snapshot is not None:
            return snapshot

        future = self._inflight.get(key)
        if future is None:
            future = asyncio.ensure_future(self._fetch(key))
            self._inflight[key] = future
            future.add_done_callback(lambda _: self._inflight.pop(key, None))

        # A cancelled waiter must not cancel the request other callers share
        return await asyncio.shield(future)

    async def _fetch(self, key: str) -> LoadedSnapshot:
        logger.debug("Fetching snapshot %s", key)
        try:
            response = await self.client.get(key)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SnapshotLoadError(key, e) from e

        snapshot = LoadedSnapshot(ref=key, payload=payload)
        self._cache[key] = snapshot
        return snapshot
