"""
Geo-referencing helpers for satellite overlays.

Satellite images are requested from the WMS already projected in Web
Mercator (EPSG:3857), the projection of the basemap tiles. The bounding box
stored next to each image stays in plain degrees (EPSG:4326) because the map
widget positions image overlays from degree corners. The image pixels are
never resampled on the viewer side, and the bbox is never converted to
metres there; doing either would apply the projection twice.
"""
import math
from typing import Sequence

from pyproj import Transformer

from cyclone_swi.models.snapshot import BoundingBox

# Latitude where Web Mercator maps to a square world
WEB_MERCATOR_MAX_LAT = 85.0511

_to_web_mercator = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)


def url_for(file_ref: str, root: str) -> str:
    """Resolve a file reference from the index against the resource root."""
    if not root:
        return file_ref
    return f"{root.rstrip('/')}/{file_ref.lstrip('/')}"


def bounds_for(bbox: Sequence[float]) -> list[list[float]]:
    """
    Convert ``[minLon, minLat, maxLon, maxLat]`` into map bounds
    ``[[minLat, minLon], [maxLat, maxLon]]`` (south-west, north-east).

    No clamping or range checks; whatever the index holds is passed on.
    """
    min_lon, min_lat, max_lon, max_lat = bbox
    return [[min_lat, min_lon], [max_lat, max_lon]]


def validate_bbox(bbox: Sequence[float]) -> BoundingBox:
    """
    Check a degree bbox before it is written to the index.

    Returns the bbox as a float tuple, raises ``ValueError`` when it cannot
    be placed on a Web Mercator map.
    """
    if len(bbox) != 4:
        raise ValueError(f"bbox must have 4 values, got {len(bbox)}")

    min_lon, min_lat, max_lon, max_lat = (float(v) for v in bbox)
    if not all(math.isfinite(v) for v in (min_lon, min_lat, max_lon, max_lat)):
        raise ValueError(f"bbox has non-finite values: {list(bbox)}")
    if not (-180 <= min_lon < max_lon <= 180):
        raise ValueError(f"bbox longitudes out of range: {min_lon}, {max_lon}")
    if not (-WEB_MERCATOR_MAX_LAT <= min_lat < max_lat <= WEB_MERCATOR_MAX_LAT):
        raise ValueError(f"bbox latitudes out of range: {min_lat}, {max_lat}")

    return (min_lon, min_lat, max_lon, max_lat)


def to_web_mercator(bbox: Sequence[float]) -> tuple[float, float, float, float]:
    """Degree bbox corners as EPSG:3857 metres (minX, minY, maxX, maxY)."""
    min_lon, min_lat, max_lon, max_lat = bbox
    min_x, min_y = _to_web_mercator.transform(min_lon, min_lat)
    max_x, max_y = _to_web_mercator.transform(max_lon, max_lat)
    return (min_x, min_y, max_x, max_y)


def wms_getmap_params(
    layer: str, bbox: Sequence[float], height: int = 1000
) -> dict[str, str]:
    """
    Build a WMS 1.3.0 GetMap query for ``layer`` covering the degree ``bbox``.

    The request asks for EPSG:3857 so the returned image lines up with the
    basemap tiles, and the width follows the projected aspect ratio so each
    pixel is square in Web Mercator.
    """
    min_x, min_y, max_x, max_y = to_web_mercator(bbox)
    width = round(height * (max_x - min_x) / (max_y - min_y))

    return {
        "service": "WMS",
        "version": "1.3.0",
        "request": "GetMap",
        "layers": layer,
        "styles": "",
        "crs": "EPSG:3857",
        "bbox": ",".join(f"{v:.2f}" for v in (min_x, min_y, max_x, max_y)),
        "width": str(width),
        "height": str(height),
        "format": "image/png",
        "transparent": "true",
    }
