from typing import Optional

from cyclone_swi.viewer.errors import OperationCancelled


class CancelToken:
    """Cooperative cancellation flag shared by a tree of async operations.

    Cancelling a token cancels every child created from it. Operations
    check ``cancelled`` before mutating shared state; nothing is interrupted
    mid-flight.
    """

    def __init__(self, parent: Optional["CancelToken"] = None) -> None:
        self._cancelled = False
        self._children: list[CancelToken] = []
        if parent is not None:
            parent._children.append(self)
            self._cancelled = parent.cancelled

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        for child in self._children:
            child.cancel()

    def child(self) -> "CancelToken":
        return CancelToken(parent=self)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled("operation was cancelled")
