"""
Field-scale geometry for irrigation shapes.

Bearings are degrees clockwise from north. Conversions between a
(center, bearing, radius) triple and a coordinate use an equirectangular
approximation (1 degree of latitude = 111,320 m, longitude scaled by the
cosine of the center latitude), which is accurate enough for pivots and
linear moves a few kilometres across.
"""
import math
from typing import List, Tuple, Union

import numpy as np
from pyproj import Geod
from shapely.geometry import Polygon, box, mapping

from vrizones.domain.errors import InvalidGeometry
from vrizones.domain.models import (
    BoundingBox,
    CircleShape,
    GeoPoint,
    PolygonShape,
    RectangleShape,
)


METERS_PER_DEGREE = 111_320
COORDINATE_PRECISION = 6
SECTOR_STEP_DEGREES = 1.0
DEGENERATE_SECTOR_OFFSET = 0.1

_GEOD = Geod(ellps="WGS84")


def _require_finite_center(center: GeoPoint) -> None:
    if not (math.isfinite(center.latitude) and math.isfinite(center.longitude)):
        raise InvalidGeometry(
            f"Center must have finite coordinates, got ({center.latitude}, {center.longitude})"
        )


def _require_positive(value: float, name: str) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise InvalidGeometry(f"{name} must be a positive number, got {value}")


def _require_finite_angle(value: float, name: str) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidGeometry(f"{name} must be a finite number, got {value}")


def _meters_per_degree_longitude(latitude: float) -> float:
    return METERS_PER_DEGREE * math.cos(math.radians(latitude))


def normalize_angle(angle: float) -> float:
    """Fold any angle into [0, 360)."""
    return (angle % 360 + 360) % 360


def point_from_angle(center: GeoPoint, angle_deg: float, radius_m: float) -> GeoPoint:
    """
    Project a point at a bearing and distance from the center.

    Args:
        center: Pivot point
        angle_deg: Bearing in degrees clockwise from north
        radius_m: Distance from the center in meters

    Returns:
        GeoPoint rounded to 6 decimal places

    Raises:
        InvalidGeometry: If the radius is not positive or the center is not finite
    """
    _require_finite_center(center)
    _require_positive(radius_m, "radius")
    _require_finite_angle(angle_deg, "angle")

    radians = math.radians(angle_deg)
    lat_offset = radius_m * math.cos(radians) / METERS_PER_DEGREE
    lng_offset = radius_m * math.sin(radians) / _meters_per_degree_longitude(center.latitude)

    return GeoPoint(
        latitude=round(center.latitude + lat_offset, COORDINATE_PRECISION),
        longitude=round(center.longitude + lng_offset, COORDINATE_PRECISION),
    )


def angle_from_point(center: GeoPoint, point: GeoPoint) -> float:
    """
    Bearing from the center to a point, in [0, 360).

    The longitude difference is scaled by cos(latitude) so this is the
    inverse of point_from_angle at any latitude.
    """
    _require_finite_center(center)
    _require_finite_center(point)

    d_lat = point.latitude - center.latitude
    d_lng = (point.longitude - center.longitude) * math.cos(math.radians(center.latitude))
    angle = math.degrees(math.atan2(d_lng, d_lat))
    return normalize_angle(angle)


def sector_angles(
    start_deg: float,
    end_deg: float,
    step_deg: float = SECTOR_STEP_DEGREES,
    degenerate_offset: float = DEGENERATE_SECTOR_OFFSET,
) -> List[float]:
    """
    Bearings traced along a sector arc, clockwise from start to end.

    A sector whose end is smaller than its start wraps through north. Equal
    start and end yield the start bearing plus a small offset so the slice
    still renders as a visible wedge.
    """
    _require_finite_angle(start_deg, "start angle")
    _require_finite_angle(end_deg, "end angle")
    _require_positive(step_deg, "sector step")
    if step_deg > SECTOR_STEP_DEGREES:
        raise InvalidGeometry(
            f"Sector step cannot be coarser than {SECTOR_STEP_DEGREES} degree, got {step_deg}"
        )

    start = normalize_angle(start_deg)
    end = normalize_angle(end_deg)

    if start == end:
        return [start, start + degenerate_offset]

    if end < start:
        end += 360

    angles = np.arange(start, end, step_deg).tolist()
    # Always land exactly on the end bearing
    if not angles or not math.isclose(angles[-1], end):
        angles.append(end)
    return angles


def _nudge(point: GeoPoint, bearing_deg: float) -> GeoPoint:
    """Shift a point by one unit of the last kept decimal, along the main axis of a bearing."""
    unit = 10 ** -COORDINATE_PRECISION
    radians = math.radians(bearing_deg)
    north, east = math.cos(radians), math.sin(radians)
    if abs(north) >= abs(east):
        return GeoPoint(
            latitude=round(point.latitude + math.copysign(unit, north), COORDINATE_PRECISION),
            longitude=point.longitude,
        )
    return GeoPoint(
        latitude=point.latitude,
        longitude=round(point.longitude + math.copysign(unit, east), COORDINATE_PRECISION),
    )


def sector_polygon(
    center: GeoPoint,
    start_deg: float,
    end_deg: float,
    radius_m: float,
    step_deg: float = SECTOR_STEP_DEGREES,
    degenerate_offset: float = DEGENERATE_SECTOR_OFFSET,
) -> List[GeoPoint]:
    """
    Outline of a pivot sector: arc points followed by the center.

    Args:
        center: Pivot point
        start_deg: Start bearing in degrees
        end_deg: End bearing in degrees
        radius_m: Sector radius in meters
        step_deg: Arc sampling step (1 degree or finer)
        degenerate_offset: Offset used when start equals end

    Returns:
        Ordered list of GeoPoints, closed by the center as the last point
    """
    _require_finite_center(center)
    _require_positive(radius_m, "radius")

    angles = sector_angles(start_deg, end_deg, step_deg, degenerate_offset)
    points = [point_from_angle(center, angle, radius_m) for angle in angles]

    # On very small radii the offset point rounds onto the start point
    if len(points) == 2 and points[0] == points[1]:
        points[1] = _nudge(points[0], angles[0] + 90)

    points.append(center)
    return points


def rectangle_from_center(
    center: GeoPoint,
    length_m: float,
    width_m: float,
    length_is_horizontal: bool = True,
) -> BoundingBox:
    """
    Bounding box of a linear-move footprint centred on a point.

    Args:
        center: Rectangle center
        length_m: Length of travel in meters
        width_m: Span of the machine in meters
        length_is_horizontal: True when the length runs east-west

    Returns:
        BoundingBox with south-west and north-east corners
    """
    _require_finite_center(center)
    _require_positive(length_m, "length")
    _require_positive(width_m, "width")

    north_south_m, east_west_m = (width_m, length_m) if length_is_horizontal else (length_m, width_m)

    lat_delta = north_south_m / METERS_PER_DEGREE
    lng_delta = east_west_m / _meters_per_degree_longitude(center.latitude)

    return BoundingBox(
        southwest=GeoPoint(
            latitude=center.latitude - lat_delta / 2,
            longitude=center.longitude - lng_delta / 2,
        ),
        northeast=GeoPoint(
            latitude=center.latitude + lat_delta / 2,
            longitude=center.longitude + lng_delta / 2,
        ),
    )


def rectangle_corners(bbox: BoundingBox) -> dict[str, GeoPoint]:
    """Named corners of a box, offered as start points of a linear move."""
    sw, ne = bbox.southwest, bbox.northeast
    return {
        "South West": sw,
        "North East": ne,
        "South East": GeoPoint(latitude=sw.latitude, longitude=ne.longitude),
        "North West": GeoPoint(latitude=ne.latitude, longitude=sw.longitude),
    }


def measure_bounds(bbox: BoundingBox, length_is_horizontal: bool = True) -> Tuple[float, float]:
    """
    Geodesic length and width of a drawn rectangle.

    The east-west and north-south edges are measured along the southern and
    western sides of the box.

    Returns:
        (length_m, width_m), swapped according to the travel direction
    """
    sw, ne = bbox.southwest, bbox.northeast
    _, _, east_west_m = _GEOD.inv(sw.longitude, sw.latitude, ne.longitude, sw.latitude)
    _, _, north_south_m = _GEOD.inv(sw.longitude, sw.latitude, sw.longitude, ne.latitude)

    if length_is_horizontal:
        return (float(east_west_m), float(north_south_m))
    return (float(north_south_m), float(east_west_m))


def shape_geometry(shape: Union[CircleShape, RectangleShape, PolygonShape]) -> dict:
    """
    GeoJSON Polygon of a drawn shape, with (longitude, latitude) coordinates.

    A circle is traced with the sector step all the way round; a rectangle
    is its linear-move bounding box.
    """
    if isinstance(shape, CircleShape):
        _require_finite_center(shape.center)
        _require_positive(shape.radius_m, "radius")
        ring = [
            point_from_angle(shape.center, angle, shape.radius_m)
            for angle in np.arange(0, 360, SECTOR_STEP_DEGREES).tolist()
        ]
        polygon = Polygon([(point.longitude, point.latitude) for point in ring])
    elif isinstance(shape, RectangleShape):
        bbox = rectangle_from_center(
            shape.center, shape.length_m, shape.width_m, shape.length_is_horizontal
        )
        polygon = box(*bbox.bounds)
    else:
        for vertex in shape.vertices:
            _require_finite_center(vertex)
        polygon = Polygon([(vertex.longitude, vertex.latitude) for vertex in shape.vertices])
    return mapping(polygon)
