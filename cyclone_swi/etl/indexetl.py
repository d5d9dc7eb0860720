import json
import logging
from pathlib import Path

from cyclone_swi import BaseETL
from cyclone_swi.models.snapshot import SatelliteImage, SnapshotMetadata
from cyclone_swi.utils.utils import format_timestamp, parse_run_timestamp
from cyclone_swi.viewer.overlay import validate_bbox

logger = logging.getLogger(__name__)

# Catalog layer id -> snapshot field
SATELLITE_LAYERS = {
    "ir108": "satellite_ir108",
    "rgb_naturalenhncd": "satellite_rgb",
}

CYCLONE_LIST_FILE = "cyclone_list.json"


class IndexETL(BaseETL):
    """Builds the snapshot index from the fetched archive.

    Trajectory files live under ``<data_dir>/YYYY-MM-DD/HH-MM-SS/`` and
    satellite images are listed in the catalog written by the satellite
    fetcher. Each trajectory file becomes one snapshot, paired with the
    satellite images closest in time.
    """

    name = "Index"

    def __init__(
        self,
        archive_root: Path = Path("."),
        index_path: Path = Path("index.json"),
        satellite_tolerance: int = 3600,
    ) -> None:
        super().__init__(archive_root)
        self.index_path = index_path
        self.satellite_tolerance = satellite_tolerance

    def extract(self, source: str) -> list[dict]:
        path = Path(source)
        if not path.is_absolute():
            path = self.archive_root / path

        if path.is_dir():
            return self._walk_trajectories(path)

        # Satellite catalog: {"images": [...]}
        records = []
        for catalog in super().extract(source):
            for image in catalog.get("images", []):
                records.append({"kind": "satellite", **image})
        return records

    def _walk_trajectories(self, data_dir: Path) -> list[dict]:
        records = []
        data_dir = data_dir.resolve()
        root = self.archive_root.resolve()
        if not data_dir.is_relative_to(root):
            root = data_dir.parent

        for file in sorted(data_dir.rglob("*.json")):
            if file.name == CYCLONE_LIST_FILE:
                continue

            # The write time is the observation time. Run directory names mix
            # a UTC date with a local time of day, so they are only a fallback
            # for archives restored without modification times.
            timestamp = int(file.stat().st_mtime)
            if timestamp <= 0:
                parts = file.relative_to(data_dir).parts
                date_str = parts[0] if len(parts) > 1 else None
                time_str = parts[1] if len(parts) > 2 else None
                timestamp = parse_run_timestamp(date_str, time_str)
            if timestamp is None:
                logger.warning("No timestamp for %s, skipping", file)
                continue

            try:
                content = json.loads(file.read_text(encoding="utf-8"))
                trajectory = content.get("cyclone_trajectory") or {}
                cyclone_id = trajectory.get("cyclone_id")
                cyclone_name = trajectory.get("cyclone_name")
            except (ValueError, AttributeError):
                logger.warning("Could not read %s, using file name as cyclone id", file)
                cyclone_id = file.stem.replace("_", "/")
                cyclone_name = None

            records.append(
                {
                    "kind": "trajectory",
                    "path": file.relative_to(root).as_posix(),
                    "timestamp": timestamp,
                    "cyclone_id": cyclone_id,
                    "cyclone_name": cyclone_name,
                }
            )
        return records

    def transform(self, raw_data: list[dict]) -> list[SnapshotMetadata]:
        images: dict[str, list[SatelliteImage]] = {field: [] for field in SATELLITE_LAYERS.values()}
        snapshots = []

        for raw in raw_data:
            if raw.get("kind") == "satellite":
                field = SATELLITE_LAYERS.get(raw.get("layer"))
                if field is None or raw.get("timestamp") is None:
                    continue
                try:
                    bbox = validate_bbox(raw.get("bbox") or [])
                except (TypeError, ValueError) as e:
                    logger.warning("Dropping satellite image %s: %s", raw.get("file"), e)
                    continue
                images[field].append(
                    SatelliteImage(
                        file=raw["file"],
                        bbox=bbox,
                        layer=raw["layer"],
                        timestamp=int(raw["timestamp"]),
                    )
                )
            else:
                snapshots.append(
                    SnapshotMetadata(
                        timestamp=raw["timestamp"],
                        trajectory_ref=raw["path"],
                        date=format_timestamp(raw["timestamp"]),
                        cyclone_id=raw.get("cyclone_id"),
                        cyclone_name=raw.get("cyclone_name"),
                    )
                )

        # Sort by timestamp, keeping walk order for equal timestamps
        snapshots.sort(key=lambda s: s.timestamp)

        for snapshot in snapshots:
            for field, candidates in images.items():
                setattr(snapshot, field, self._nearest_image(candidates, snapshot.timestamp))

        return snapshots

    def _nearest_image(
        self, candidates: list[SatelliteImage], timestamp: int
    ) -> SatelliteImage | None:
        best, best_diff = None, None
        for image in candidates:
            diff = abs(image.timestamp - timestamp)
            if diff > self.satellite_tolerance:
                continue
            if best_diff is None or diff < best_diff:
                best, best_diff = image, diff
        return best

    def load(self, snapshots: list[SnapshotMetadata]) -> None:
        index_path = self.index_path
        if not index_path.is_absolute():
            index_path = self.archive_root / index_path
        index_path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a sibling file first so readers never see a partial index
        tmp_path = index_path.with_suffix(index_path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps([s.to_dict() for s in snapshots], indent=2), encoding="utf-8"
        )
        tmp_path.replace(index_path)
        logger.info("Wrote %d snapshot(s) to %s", len(snapshots), index_path)
