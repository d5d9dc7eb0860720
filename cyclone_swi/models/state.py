from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Phase(str, Enum):
    IDLE = "idle"
    LOADING_INDEX = "loading_index"
    PREFETCHING = "prefetching"
    READY = "ready"
    ERROR = "error"


class ErrorKind(str, Enum):
    INDEX_LOAD = "index_load"
    SNAPSHOT_LOAD = "snapshot_load"


@dataclass(frozen=True)
class ViewerState:
    phase: Phase = Phase.IDLE
    message: str = ""

    # Prefetch progress
    progress: int = 0
    completed: int = 0
    total: int = 0

    # Selection
    current_index: Optional[int] = None

    # Failure
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.phase in (Phase.LOADING_INDEX, Phase.PREFETCHING)


@dataclass
class PrefetchReport:
    total: int = 0
    succeeded: list[int] = field(default_factory=list)
    failed: dict[int, Exception] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed
