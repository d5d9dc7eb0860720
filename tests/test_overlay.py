"""
Tests for satellite overlay geo-referencing.
"""

import pytest

from cyclone_swi.viewer.overlay import (
    bounds_for,
    to_web_mercator,
    url_for,
    validate_bbox,
    wms_getmap_params,
)

SWI_BBOX = [21.1, -41, 103, 21.1]


class TestBoundsFor:
    def test_swaps_axes_into_corner_pairs(self):
        assert bounds_for(SWI_BBOX) == [[-41, 21.1], [21.1, 103]]

    def test_accepts_tuples(self):
        assert bounds_for((1.0, 2.0, 3.0, 4.0)) == [[2.0, 1.0], [4.0, 3.0]]

    def test_invalid_bbox_passes_through(self):
        """Out-of-range degrees are not clamped."""
        assert bounds_for([200, -95, 10, 95]) == [[-95, 200], [95, 10]]


class TestUrlFor:
    def test_joins_root_and_file(self):
        assert (
            url_for("satellite_images/a.png", "https://host/app/")
            == "https://host/app/satellite_images/a.png"
        )

    def test_no_duplicate_slashes(self):
        assert url_for("/a.png", "https://host/app") == "https://host/app/a.png"

    def test_empty_root(self):
        assert url_for("a.png", "") == "a.png"


class TestValidateBbox:
    def test_valid(self):
        assert validate_bbox(SWI_BBOX) == (21.1, -41.0, 103.0, 21.1)

    @pytest.mark.parametrize(
        "bbox",
        [
            [21.1, -41, 103],
            [103, -41, 21.1, 21.1],
            [21.1, -41, 190, 21.1],
            [21.1, -89, 103, 21.1],
            [21.1, float("nan"), 103, 21.1],
        ],
    )
    def test_invalid(self, bbox):
        with pytest.raises(ValueError):
            validate_bbox(bbox)


class TestWmsGetMapParams:
    def test_requests_web_mercator(self):
        params = wms_getmap_params("ir108", SWI_BBOX)
        assert params["crs"] == "EPSG:3857"
        assert params["layers"] == "ir108"
        assert params["format"] == "image/png"
        assert params["height"] == "1000"

    def test_bbox_is_in_metres(self):
        params = wms_getmap_params("ir108", SWI_BBOX)
        values = [float(v) for v in params["bbox"].split(",")]
        assert values == pytest.approx(list(to_web_mercator(SWI_BBOX)), abs=0.01)
        # 21.1 degrees east is ~2349 km from the prime meridian
        assert values[0] == pytest.approx(2_348_841, rel=1e-4)

    def test_width_follows_projected_aspect_ratio(self):
        """A 20x20 degree box at the equator is taller than wide in Mercator."""
        params = wms_getmap_params("ir108", [-10, -10, 10, 10], height=1000)
        assert params["width"] == "995"

    def test_width_differs_from_degree_aspect(self):
        params = wms_getmap_params("rgb_naturalenhncd", SWI_BBOX, height=1000)
        degree_width = round(1000 * (103 - 21.1) / (21.1 + 41))
        assert 1000 < int(params["width"]) < degree_width
