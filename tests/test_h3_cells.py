import h3
import pytest

from config import H3_RESOLUTION
from core.exceptions import InvalidRegionError, ValidationError
from core.h3_cells import (
    BoundingBox,
    cells_along_track,
    cells_in_region,
    normalize_cell_id,
    validate_cell_id,
)


def _box_around(cell: str, pad: float = 0.0001) -> BoundingBox:
    lat, lng = h3.cell_to_latlng(cell)
    return BoundingBox(min_lat=lat - pad, min_lng=lng - pad, max_lat=lat + pad, max_lng=lng + pad)


def test_normalize_accepts_legacy_integer_ids(krakow_cell: str) -> None:
    as_int = h3.str_to_int(krakow_cell)
    assert normalize_cell_id(as_int) == krakow_cell
    assert normalize_cell_id(str(as_int)) == krakow_cell


def test_normalize_canonicalizes_hex_strings(krakow_cell: str) -> None:
    assert normalize_cell_id(f"  {krakow_cell.upper()} ") == krakow_cell


@pytest.mark.parametrize("value", ["", "not-a-cell", "ffffffffffffffff", 0, -5, True, 1.5])
def test_normalize_rejects_garbage(value: object) -> None:
    with pytest.raises(ValidationError):
        normalize_cell_id(value)


def test_validate_rejects_wrong_resolution(krakow_cell: str) -> None:
    parent = h3.cell_to_parent(krakow_cell, H3_RESOLUTION - 1)
    with pytest.raises(ValidationError) as exc_info:
        validate_cell_id(parent)
    assert parent in exc_info.value.message
    assert f"resolution {H3_RESOLUTION}" in exc_info.value.message


def test_validate_error_names_offending_integer() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_cell_id(12345)
    assert "12345" in exc_info.value.message


def test_cells_in_region_small_box_hits_its_cell(krakow_cell: str, far_cell: str) -> None:
    cells = cells_in_region(_box_around(krakow_cell))
    assert krakow_cell in cells
    assert far_cell not in cells
    assert all(h3.get_resolution(cell) == H3_RESOLUTION for cell in cells)


def test_cells_in_region_covers_cells_between_corners(krakow_cells: list[str]) -> None:
    center, neighbour = krakow_cells[0], krakow_cells[1]
    (lat1, lng1), (lat2, lng2) = h3.cell_to_latlng(center), h3.cell_to_latlng(neighbour)
    bbox = BoundingBox(
        min_lat=min(lat1, lat2) - 0.0001,
        min_lng=min(lng1, lng2) - 0.0001,
        max_lat=max(lat1, lat2) + 0.0001,
        max_lng=max(lng1, lng2) + 0.0001,
    )
    cells = cells_in_region(bbox)
    assert {center, neighbour} <= cells


@pytest.mark.parametrize(
    "bbox",
    [
        BoundingBox(50.0, 19.9, 50.0, 20.0),
        BoundingBox(50.0, 19.9, 50.1, 19.9),
        BoundingBox(50.1, 19.9, 50.0, 20.0),
        BoundingBox(-91.0, 19.9, 50.0, 20.0),
        BoundingBox(50.0, 19.9, 50.1, 181.0),
    ],
)
def test_cells_in_region_rejects_bad_boxes(bbox: BoundingBox) -> None:
    with pytest.raises(InvalidRegionError):
        cells_in_region(bbox)


def test_cells_in_region_rejects_huge_boxes() -> None:
    with pytest.raises(InvalidRegionError, match="too large"):
        cells_in_region(BoundingBox(40.0, 10.0, 55.0, 30.0), max_cells=100)


def test_track_cells_are_ordered_and_contiguous() -> None:
    # Roughly 1.1 km due east along one parallel.
    track = [[19.9300, 50.0614], [19.9450, 50.0614]]
    cells = cells_along_track(track, H3_RESOLUTION, spacing_m=5)

    assert cells[0] == h3.latlng_to_cell(50.0614, 19.9300, H3_RESOLUTION)
    assert cells[-1] == h3.latlng_to_cell(50.0614, 19.9450, H3_RESOLUTION)
    assert len(cells) > 2
    for prev, curr in zip(cells, cells[1:], strict=False):
        assert prev != curr
        assert h3.grid_distance(prev, curr) == 1


def test_track_drops_invalid_points_and_repeats() -> None:
    track = [[19.9366, 50.0614], [19.9366, 50.0614], ["x", 1], [500, 50], [19.9366, 50.0614]]
    assert cells_along_track(track) == [h3.latlng_to_cell(50.0614, 19.9366, H3_RESOLUTION)]


def test_track_without_valid_points_is_empty() -> None:
    assert cells_along_track([[999, 999]]) == []
