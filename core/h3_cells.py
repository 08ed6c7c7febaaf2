"""
H3 cell resolution for the territory grid.

Converts bounding boxes and GPS tracks into canonical cell ids at the
process-wide resolution, and normalizes cell ids received from clients.
Legacy clients send cells as signed 64-bit integers; everything stored uses
the lowercase hexadecimal string form returned by h3.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, NamedTuple

import h3
import pyproj
from shapely.geometry import box

from config import H3_RESOLUTION, MAX_REGION_CELLS, TRACK_SAMPLE_SPACING_M
from core.exceptions import InvalidRegionError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

GEOD = pyproj.Geod(ellps="WGS84")
M2_PER_KM2 = 1_000_000.0
# Hex string form is 15 chars; the decimal int64 form is longer.
_HEX_STRING_LENGTH = 15
_UINT64_MAX = 2**64 - 1


class BoundingBox(NamedTuple):
    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float


def normalize_cell_id(value: Any) -> str:
    """Return the canonical string id for ``value`` or raise ValidationError."""
    if isinstance(value, bool):
        msg = f"Invalid H3 index: {value}"
        raise ValidationError(msg)

    if isinstance(value, str):
        raw = value.strip().lower()
        if raw.isdigit() and len(raw) > _HEX_STRING_LENGTH:
            value = int(raw)
        else:
            if raw and h3.is_valid_cell(raw):
                return raw
            msg = f"Invalid H3 index: {value}"
            raise ValidationError(msg, {"h3_index": value})

    if isinstance(value, int):
        if 0 < value <= _UINT64_MAX:
            cell = h3.int_to_str(value)
            if h3.is_valid_cell(cell):
                return cell
        msg = f"Invalid H3 index: {value}"
        raise ValidationError(msg, {"h3_index": value})

    msg = f"Invalid H3 index: {value!r}"
    raise ValidationError(msg)


def validate_cell_id(value: Any, resolution: int = H3_RESOLUTION) -> str:
    """Normalize ``value`` and require it to sit at ``resolution``."""
    cell = normalize_cell_id(value)
    if h3.get_resolution(cell) != resolution:
        msg = f"H3 index {value} is not at resolution {resolution}"
        raise ValidationError(msg, {"h3_index": value, "resolution": resolution})
    return cell


def validate_coordinate_pair(coord: Sequence[Any]) -> tuple[bool, list[float] | None]:
    """Validate a [lng, lat] coordinate pair."""
    if not isinstance(coord, (list, tuple)) or len(coord) < 2:
        return False, None
    try:
        lng = float(coord[0])
        lat = float(coord[1])
    except (TypeError, ValueError, IndexError):
        return False, None
    if not (-180 <= lng <= 180 and -90 <= lat <= 90):
        return False, None
    return True, [lng, lat]


def cells_in_region(
    bbox: BoundingBox,
    resolution: int = H3_RESOLUTION,
    *,
    max_cells: int = MAX_REGION_CELLS,
) -> set[str]:
    """Return every cell at ``resolution`` whose hexagon intersects ``bbox``.

    The box is closed as a four-corner loop with no holes. Raises
    InvalidRegionError for out-of-range coordinates, a box that collapses to
    a point or line, or a box that would resolve to more than ``max_cells``.
    """
    valid_min, _ = validate_coordinate_pair([bbox.min_lng, bbox.min_lat])
    valid_max, _ = validate_coordinate_pair([bbox.max_lng, bbox.max_lat])
    if not (valid_min and valid_max):
        msg = "Bounding box coordinates are out of range"
        raise InvalidRegionError(msg, bbox._asdict())
    if bbox.min_lat >= bbox.max_lat or bbox.min_lng >= bbox.max_lng:
        msg = "Bounding box is degenerate: min must be strictly below max"
        raise InvalidRegionError(msg, bbox._asdict())

    region = box(bbox.min_lng, bbox.min_lat, bbox.max_lng, bbox.max_lat)
    area_m2, _ = GEOD.geometry_area_perimeter(region)
    area_km2 = abs(area_m2) / M2_PER_KM2
    estimated = area_km2 / h3.average_hexagon_area(resolution, unit="km^2")
    if estimated > max_cells:
        msg = f"Bounding box too large: about {int(estimated)} cells (max {max_cells})"
        raise InvalidRegionError(msg, bbox._asdict())

    # shapely yields (x=lng, y=lat); h3 wants (lat, lng) and an open loop.
    outer = [(lat, lng) for lng, lat in list(region.exterior.coords)[:-1]]
    shape = h3.LatLngPoly(outer)
    cells = h3.h3shape_to_cells_experimental(shape, resolution, contain="overlap")
    logger.debug("Resolved bbox %s to %d cells", bbox, len(cells))
    return set(cells)


def cells_along_track(
    coordinates: Iterable[Sequence[Any]],
    resolution: int = H3_RESOLUTION,
    spacing_m: float = TRACK_SAMPLE_SPACING_M,
) -> list[str]:
    """Return the ordered cells crossed by a [lng, lat] track.

    Each leg is densified along the geodesic every ``spacing_m`` metres so
    that fast-moving samples do not skip cells between fixes. Invalid points
    are dropped; consecutive repeats are collapsed.
    """
    points: list[list[float]] = []
    for coord in coordinates:
        is_valid, pair = validate_coordinate_pair(coord)
        if not is_valid or pair is None:
            continue
        if not points or pair != points[-1]:
            points.append(pair)

    if not points:
        return []

    step = max(1.0, float(spacing_m))
    sampled: list[tuple[float, float]] = [(points[0][0], points[0][1])]
    for (lng1, lat1), (lng2, lat2) in zip(points, points[1:], strict=False):
        _, _, distance_m = GEOD.inv(lng1, lat1, lng2, lat2)
        intermediate = int(distance_m // step)
        if intermediate > 0:
            sampled.extend(GEOD.npts(lng1, lat1, lng2, lat2, intermediate))
        sampled.append((lng2, lat2))

    cells: list[str] = []
    for lng, lat in sampled:
        cell = h3.latlng_to_cell(lat, lng, resolution)
        if not cells or cells[-1] != cell:
            cells.append(cell)
    return cells
