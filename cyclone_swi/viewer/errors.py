from typing import Optional


class ViewerError(Exception):
    """Base class for errors raised while loading viewer data."""


class IndexLoadError(ViewerError):
    """The snapshot index could not be fetched or parsed."""


class SnapshotLoadError(ViewerError):
    def __init__(self, ref: str, cause: Optional[BaseException] = None) -> None:
        self.ref = ref
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Could not load snapshot {ref}{detail}")


class ImagePreloadError(ViewerError):
    def __init__(self, url: str, cause: Optional[BaseException] = None) -> None:
        self.url = url
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Could not preload image {url}{detail}")


class IndexOutOfRange(ViewerError, IndexError):
    def __init__(self, index: int, size: int) -> None:
        self.index = index
        self.size = size
        super().__init__(f"Snapshot index {index} out of range [0, {size})")


class OperationCancelled(ViewerError):
    """Raised by a cancelled token when asked to stop."""
