from cyclone_swi.models.snapshot import (
    BoundingBox,
    LoadedSnapshot,
    SatelliteImage,
    SnapshotMetadata,
)
from cyclone_swi.models.state import ErrorKind, Phase, PrefetchReport, ViewerState

__all__ = [
    "BoundingBox",
    "ErrorKind",
    "LoadedSnapshot",
    "Phase",
    "PrefetchReport",
    "SatelliteImage",
    "SnapshotMetadata",
    "ViewerState",
]
