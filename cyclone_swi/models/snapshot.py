from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

# (minLon, minLat, maxLon, maxLat) in degrees
BoundingBox = tuple[float, float, float, float]


@dataclass
class SatelliteImage:
    file: str
    bbox: BoundingBox

    # Provenance from the satellite catalog
    layer: Optional[str] = None
    timestamp: Optional[int] = None

    @classmethod
    def from_dict(cls, raw: dict) -> "SatelliteImage":
        return cls(
            file=raw["file"],
            bbox=tuple(float(v) for v in raw["bbox"]),
            layer=raw.get("layer"),
            timestamp=raw.get("timestamp"),
        )

    def to_dict(self) -> dict:
        data = {"file": self.file, "bbox": list(self.bbox)}
        if self.layer is not None:
            data["layer"] = self.layer
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data


@dataclass
class SnapshotMetadata:
    # Identifiers
    timestamp: int
    trajectory_ref: str

    # Satellite overlays
    satellite_ir108: Optional[SatelliteImage] = None
    satellite_rgb: Optional[SatelliteImage] = None

    # Display metadata
    date: Optional[str] = None
    cyclone_id: Optional[str] = None
    cyclone_name: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: dict) -> "SnapshotMetadata":
        ref = raw.get("trajectory_ref") or raw.get("path")
        if not ref:
            raise KeyError("trajectory_ref")

        ir108 = raw.get("satellite_ir108")
        rgb = raw.get("satellite_rgb") or raw.get("satellite_rgb_naturalenhncd")

        return cls(
            timestamp=int(raw["timestamp"]),
            trajectory_ref=ref,
            satellite_ir108=SatelliteImage.from_dict(ir108) if ir108 else None,
            satellite_rgb=SatelliteImage.from_dict(rgb) if rgb else None,
            date=raw.get("date"),
            cyclone_id=raw.get("cyclone_id"),
            cyclone_name=raw.get("cyclone_name"),
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "timestamp": self.timestamp,
            "trajectory_ref": self.trajectory_ref,
        }
        if self.satellite_ir108:
            data["satellite_ir108"] = self.satellite_ir108.to_dict()
        if self.satellite_rgb:
            data["satellite_rgb"] = self.satellite_rgb.to_dict()
        for key in ("date", "cyclone_id", "cyclone_name"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    def images(self) -> Iterator[SatelliteImage]:
        """Satellite images attached to this snapshot, IR108 first."""
        for image in (self.satellite_ir108, self.satellite_rgb):
            if image and image.file:
                yield image


@dataclass(frozen=True)
class LoadedSnapshot:
    ref: str
    payload: Any = field(repr=False)

    @property
    def trajectory(self) -> dict:
        if not isinstance(self.payload, dict):
            return {}
        return self.payload.get("cyclone_trajectory") or {}

    @property
    def cyclone_id(self) -> Optional[str]:
        return self.trajectory.get("cyclone_id")

    @property
    def cyclone_name(self) -> Optional[str]:
        return self.trajectory.get("cyclone_name")

    @property
    def features(self) -> list[dict]:
        return list(self.trajectory.get("features") or [])

    def features_of(self, data_type: str) -> list[dict]:
        return [
            f
            for f in self.features
            if (f.get("properties") or {}).get("data_type") == data_type
        ]
