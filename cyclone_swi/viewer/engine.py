"""
Snapshot prefetch and selection engine.

Drives the viewer start-up protocol as an explicit state machine:

    IDLE -> LOADING_INDEX -> PREFETCHING -> READY
                  \\               \\
                   +---> ERROR <---+

Listeners subscribed with ``subscribe`` receive every new ``ViewerState``.
All work runs on one asyncio event loop; the only parallelism is
interleaved network I/O.
"""
import asyncio
import logging
import time
from dataclasses import replace
from typing import Callable, Optional, Sequence

import httpx

from cyclone_swi.models.snapshot import LoadedSnapshot, SnapshotMetadata
from cyclone_swi.models.state import ErrorKind, Phase, PrefetchReport, ViewerState
from cyclone_swi.settings import ViewerSettings
from cyclone_swi.viewer.cancel import CancelToken
from cyclone_swi.viewer.errors import (
    ImagePreloadError,
    IndexLoadError,
    IndexOutOfRange,
    SnapshotLoadError,
)
from cyclone_swi.viewer.loader import SnapshotLoader, load_index
from cyclone_swi.viewer.overlay import url_for
from cyclone_swi.viewer.preloader import ImagePreloader

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

Listener = Callable[[ViewerState], None]


def make_client(settings: ViewerSettings) -> httpx.AsyncClient:
    """HTTP client rooted at the archive web root."""
    return httpx.AsyncClient(base_url=settings.base_url, follow_redirects=True)


def compute_horizon(now: float, lookback_days: float = 2, unit: str = "s") -> float:
    """Lookback instant ``now - lookback_days`` in the index timestamp unit."""
    horizon = now - lookback_days * SECONDS_PER_DAY
    if unit == "ms":
        return horizon * 1000
    return horizon


def nearest_index(metadata: Sequence[SnapshotMetadata], horizon: float) -> int:
    """Index of the snapshot closest to ``horizon``; the earliest wins ties."""
    best, best_diff = 0, float("inf")
    for i, meta in enumerate(metadata):
        diff = abs(meta.timestamp - horizon)
        if diff < best_diff:
            best, best_diff = i, diff
    return best


def prefetch_window(
    metadata: Sequence[SnapshotMetadata], horizon: float
) -> list[SnapshotMetadata]:
    return [meta for meta in metadata if meta.timestamp >= horizon]


class PrefetchEngine:
    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Optional[ViewerSettings] = None,
        *,
        clock: Callable[[], float] = time.time,
        loader: Optional[SnapshotLoader] = None,
        preloader: Optional[ImagePreloader] = None,
    ) -> None:
        self.client = client
        self.settings = settings or ViewerSettings()
        self.clock = clock
        self.loader = loader or SnapshotLoader(client)
        self.preloader = preloader or ImagePreloader(
            client, timeout=self.settings.image_timeout
        )

        self.metadata: list[SnapshotMetadata] = []
        self.default_index = 0
        self.current_snapshot: Optional[LoadedSnapshot] = None
        self.current_metadata: Optional[SnapshotMetadata] = None
        self.report = PrefetchReport()
        self.state = ViewerState()

        self._listeners: list[Listener] = []
        self._token = CancelToken()

    # -------------------------
    # Observers
    # -------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes) -> None:
        self.state = replace(self.state, **changes)
        for listener in list(self._listeners):
            listener(self.state)

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def current_index(self) -> Optional[int]:
        return self.state.current_index

    def image_url(self, file_ref: str) -> str:
        return url_for(file_ref, str(self.client.base_url))

    # -------------------------
    # Lifecycle
    # -------------------------
    def close(self) -> None:
        """Stop publishing results; in-flight requests finish and are ignored."""
        self._token.cancel()
        self._listeners.clear()

    async def initialize(self, token: Optional[CancelToken] = None) -> ViewerState:
        token = token or self._token.child()

        # Step 1: index
        self._publish(
            phase=Phase.LOADING_INDEX,
            message="Loading metadata...",
            progress=0,
            error=None,
            error_kind=None,
        )
        try:
            metadata = await load_index(self.client, self.settings.index_path)
        except IndexLoadError as e:
            if not token.cancelled:
                logger.error("Initialization failed: %s", e)
                self._publish(phase=Phase.ERROR, error_kind=ErrorKind.INDEX_LOAD, error=str(e))
            return self.state

        if token.cancelled:
            return self.state
        self.metadata = metadata

        if not metadata:
            logger.info("Index is empty, nothing to display")
            self._publish(phase=Phase.READY, message="No data", current_index=None)
            return self.state

        # Step 2 and 3: default selection and prefetch window
        horizon = compute_horizon(
            self.clock(), self.settings.lookback_days, self.settings.timestamp_unit
        )
        self.default_index = nearest_index(metadata, horizon)
        window = prefetch_window(metadata, horizon)

        # Step 4: prefetch
        self._publish(
            phase=Phase.PREFETCHING,
            message="Prefetching data...",
            completed=0,
            total=len(window),
        )
        self.report = await self._prefetch(window, token.child())
        if token.cancelled:
            return self.state

        # Step 5: publish the default snapshot
        default_meta = metadata[self.default_index]
        try:
            snapshot = await self.loader.fetch(default_meta)
        except SnapshotLoadError as e:
            if not token.cancelled:
                logger.error("Initialization failed: %s", e)
                self._publish(phase=Phase.ERROR, error_kind=ErrorKind.SNAPSHOT_LOAD, error=str(e))
            return self.state

        if token.cancelled:
            return self.state

        self.current_snapshot = snapshot
        self.current_metadata = default_meta
        self._publish(
            phase=Phase.READY,
            message="Ready",
            progress=100,
            current_index=self.default_index,
        )
        return self.state

    # -------------------------
    # Prefetch
    # -------------------------
    async def _prefetch(
        self, window: list[SnapshotMetadata], token: CancelToken
    ) -> PrefetchReport:
        report = PrefetchReport(total=len(window))
        if not window:
            return report

        completed = 0

        async def run(position: int, meta: SnapshotMetadata) -> None:
            nonlocal completed
            try:
                await self._prefetch_entry(meta, token)
            except (SnapshotLoadError, ImagePreloadError) as e:
                logger.warning("Prefetch of %s failed: %s", meta.trajectory_ref, e)
                report.failed[position] = e
            else:
                report.succeeded.append(position)

            completed += 1
            if not token.cancelled:
                self._publish(
                    completed=completed,
                    progress=round(completed / report.total * 100),
                    message=f"Prefetching data... {completed}/{report.total}",
                )

        await asyncio.gather(*(run(i, meta) for i, meta in enumerate(window)))
        report.succeeded.sort()

        logger.info(
            "Prefetched %d/%d snapshot(s), %d failed",
            len(report.succeeded),
            report.total,
            len(report.failed),
        )
        return report

    async def _prefetch_entry(self, meta: SnapshotMetadata, token: CancelToken) -> None:
        await self.loader.fetch(meta)
        if token.cancelled:
            return

        urls = [self.image_url(image.file) for image in meta.images()]
        results = await asyncio.gather(
            *(self.preloader.preload(url) for url in urls), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    # -------------------------
    # Navigation
    # -------------------------
    def metadata_at(self, index: int) -> SnapshotMetadata:
        if not 0 <= index < len(self.metadata):
            raise IndexOutOfRange(index, len(self.metadata))
        return self.metadata[index]

    async def load_snapshot(self, index: int) -> None:
        """
        Show the snapshot at ``index``.

        The metadata switches immediately; the snapshot follows once loaded.
        Out-of-range indices are ignored. A failed load is logged and the
        previous snapshot stays on display.
        """
        try:
            meta = self.metadata_at(index)
        except IndexOutOfRange as e:
            logger.debug("Ignoring navigation: %s", e)
            return

        token = self._token
        if token.cancelled:
            return

        self.current_metadata = meta
        self._publish(current_index=index)

        try:
            snapshot = await self.loader.fetch(meta)
        except SnapshotLoadError:
            logger.exception("Error loading snapshot %d", index)
            return

        # Drop results for a selection the user already moved away from
        if token.cancelled or self.state.current_index != index:
            return

        self.current_snapshot = snapshot
        self._publish(current_index=index)
