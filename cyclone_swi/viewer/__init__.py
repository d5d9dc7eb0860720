from cyclone_swi.viewer.cancel import CancelToken
from cyclone_swi.viewer.engine import (
    PrefetchEngine,
    compute_horizon,
    make_client,
    nearest_index,
    prefetch_window,
)
from cyclone_swi.viewer.errors import (
    ImagePreloadError,
    IndexLoadError,
    IndexOutOfRange,
    OperationCancelled,
    SnapshotLoadError,
    ViewerError,
)
from cyclone_swi.viewer.loader import SnapshotLoader, load_index
from cyclone_swi.viewer.overlay import bounds_for, url_for
from cyclone_swi.viewer.preloader import ImagePreloader

__all__ = [
    "CancelToken",
    "ImagePreloadError",
    "ImagePreloader",
    "IndexLoadError",
    "IndexOutOfRange",
    "OperationCancelled",
    "PrefetchEngine",
    "SnapshotLoadError",
    "SnapshotLoader",
    "ViewerError",
    "bounds_for",
    "compute_horizon",
    "load_index",
    "make_client",
    "nearest_index",
    "prefetch_window",
    "url_for",
]
