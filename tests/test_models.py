"""
Tests for snapshot data models.
"""

import pytest

from cyclone_swi.models import (
    LoadedSnapshot,
    Phase,
    PrefetchReport,
    SatelliteImage,
    SnapshotMetadata,
    ViewerState,
)

from conftest import trajectory_payload


class TestSnapshotMetadata:
    def test_from_dict(self):
        meta = SnapshotMetadata.from_dict(
            {
                "timestamp": 1700000000,
                "trajectory_ref": "data/a.json",
                "satellite_ir108": {"file": "ir.png", "bbox": [21.1, -41, 103, 21.1]},
            }
        )
        assert meta.timestamp == 1700000000
        assert meta.trajectory_ref == "data/a.json"
        assert meta.satellite_ir108 == SatelliteImage(file="ir.png", bbox=(21.1, -41.0, 103.0, 21.1))
        assert meta.satellite_rgb is None

    def test_legacy_keys(self):
        meta = SnapshotMetadata.from_dict(
            {
                "timestamp": 1,
                "path": "data/b.json",
                "satellite_rgb_naturalenhncd": {"file": "rgb.png", "bbox": [0, 0, 1, 1]},
            }
        )
        assert meta.trajectory_ref == "data/b.json"
        assert meta.satellite_rgb.file == "rgb.png"

    def test_missing_ref(self):
        with pytest.raises(KeyError):
            SnapshotMetadata.from_dict({"timestamp": 1})

    def test_to_dict_omits_empty_fields(self):
        meta = SnapshotMetadata(timestamp=5, trajectory_ref="x.json", cyclone_name="BELAL")
        assert meta.to_dict() == {
            "timestamp": 5,
            "trajectory_ref": "x.json",
            "cyclone_name": "BELAL",
        }

    def test_images_order(self):
        ir = SatelliteImage(file="ir.png", bbox=(0, 0, 1, 1))
        rgb = SatelliteImage(file="rgb.png", bbox=(0, 0, 1, 1))
        meta = SnapshotMetadata(timestamp=1, trajectory_ref="x", satellite_ir108=ir, satellite_rgb=rgb)
        assert list(meta.images()) == [ir, rgb]
        assert list(SnapshotMetadata(timestamp=1, trajectory_ref="x").images()) == []


class TestLoadedSnapshot:
    def test_trajectory_accessors(self):
        snapshot = LoadedSnapshot(ref="a.json", payload=trajectory_payload())
        assert snapshot.cyclone_id == "SWI$01/20232024"
        assert snapshot.cyclone_name == "ALVARO"
        assert len(snapshot.features) == 3
        assert len(snapshot.features_of("analysis")) == 2
        assert len(snapshot.features_of("forecast")) == 1

    def test_opaque_payload(self):
        snapshot = LoadedSnapshot(ref="a.json", payload=[1, 2, 3])
        assert snapshot.payload == [1, 2, 3]
        assert snapshot.cyclone_id is None
        assert snapshot.features == []


class TestState:
    def test_is_loading(self):
        assert not ViewerState().is_loading
        assert ViewerState(phase=Phase.LOADING_INDEX).is_loading
        assert ViewerState(phase=Phase.PREFETCHING).is_loading
        assert not ViewerState(phase=Phase.READY).is_loading
        assert not ViewerState(phase=Phase.ERROR).is_loading

    def test_report_complete(self):
        report = PrefetchReport(total=2, succeeded=[0, 1])
        assert report.complete
        report.failed[1] = RuntimeError("x")
        assert not report.complete
