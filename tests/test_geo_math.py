"""
Unit tests for field-scale geometry.

Tests cover:
- Point/bearing conversions and their round trip
- Sector outlines, including wrap-through-north and zero-width sectors
- Linear move rectangles and their corners
- Geodesic measurement of drawn rectangles
- Shape rendering to GeoJSON
- Input validation
"""
import math

import pytest

from vrizones.domain.errors import InvalidGeometry
from vrizones.domain.models import CircleShape, GeoPoint, PolygonShape, RectangleShape
from vrizones.utils.geo_math import (
    METERS_PER_DEGREE,
    angle_from_point,
    measure_bounds,
    normalize_angle,
    point_from_angle,
    rectangle_corners,
    rectangle_from_center,
    sector_angles,
    sector_polygon,
    shape_geometry,
)


@pytest.fixture
def center() -> GeoPoint:
    return GeoPoint(latitude=37.0, longitude=-120.0)


# ============================================================
# Point / Bearing Tests
# ============================================================

class TestPointFromAngle:
    """Tests for projecting a point at a bearing and distance."""

    def test_north_moves_latitude_only(self, center):
        """A bearing of 0 should only increase latitude."""
        point = point_from_angle(center, 0, 100)

        assert point.longitude == center.longitude
        assert point.latitude == pytest.approx(37.0 + 100 / METERS_PER_DEGREE, abs=1e-6)

    def test_east_scales_longitude_by_latitude(self, center):
        """A bearing of 90 should move longitude by radius / (111320 cos(lat))."""
        point = point_from_angle(center, 90, 100)

        expected = 100 / (METERS_PER_DEGREE * math.cos(math.radians(37.0)))
        assert point.latitude == center.latitude
        assert point.longitude == pytest.approx(-120.0 + expected, abs=1e-6)

    def test_rounded_to_six_decimals(self, center):
        """Coordinates should be rounded to 6 decimal places."""
        point = point_from_angle(center, 33.3, 123.4)

        assert point.latitude == round(point.latitude, 6)
        assert point.longitude == round(point.longitude, 6)

    @pytest.mark.parametrize("radius", [0, -5, float("nan"), float("inf")])
    def test_rejects_invalid_radius(self, center, radius):
        """Non-positive or non-finite radii should raise InvalidGeometry."""
        with pytest.raises(InvalidGeometry):
            point_from_angle(center, 45, radius)

    def test_rejects_non_finite_center(self):
        """A NaN center should raise InvalidGeometry."""
        with pytest.raises(InvalidGeometry):
            point_from_angle(GeoPoint(latitude=float("nan"), longitude=0), 45, 100)


class TestAngleFromPoint:
    """Tests for the bearing of a point."""

    @pytest.mark.parametrize("angle", [0, 1, 45, 90, 135, 180, 225, 270, 315, 359])
    def test_round_trip(self, center, angle):
        """angle_from_point should invert point_from_angle within rounding."""
        point = point_from_angle(center, angle, 500)

        result = angle_from_point(center, point)

        difference = abs((result - angle + 180) % 360 - 180)
        assert difference < 0.05

    def test_result_is_in_range(self, center):
        """Bearings west of north should be reported in [0, 360)."""
        point = GeoPoint(latitude=37.001, longitude=-120.001)

        result = angle_from_point(center, point)

        assert 0 <= result < 360
        assert result > 270

    def test_normalize_angle(self):
        """normalize_angle should fold any angle into [0, 360)."""
        assert normalize_angle(-90) == 270
        assert normalize_angle(720) == 0
        assert normalize_angle(361.5) == pytest.approx(1.5)


# ============================================================
# Sector Tests
# ============================================================

class TestSectorPolygon:
    """Tests for pivot sector outlines."""

    def test_quarter_sector_point_count(self, center):
        """A 0-90 sector should trace 91 arc points and end at the center."""
        outline = sector_polygon(center, 0, 90, 100)

        assert len(outline) == 92
        assert outline[-1] == center
        assert outline[0] == point_from_angle(center, 0, 100)
        assert outline[-2] == point_from_angle(center, 90, 100)

    def test_wraps_through_north(self):
        """A sector with end < start should walk clockwise through 0."""
        angles = sector_angles(350, 10)

        assert angles[0] == 350
        assert angles[-1] == 370
        assert len(angles) == 21

    def test_degenerate_sector_is_visible(self, center):
        """Equal start and end should give two distinct points plus the center."""
        outline = sector_polygon(center, 45, 45, 100)

        assert len(outline) == 3
        assert outline[0] != outline[1]
        assert outline[-1] == center

    def test_degenerate_sector_on_tiny_radius(self, center):
        """Even a 1m radius should not collapse the thin wedge."""
        outline = sector_polygon(center, 200, 200, 1)

        assert outline[0] != outline[1]

    @pytest.mark.parametrize("bearing", [0, 10, 80, 135, 270])
    def test_degenerate_sector_on_centimetre_radius(self, bearing):
        """Rounding would put both arc points on the center; they must still differ."""
        pivot = GeoPoint(latitude=40.0, longitude=-100.0)

        outline = sector_polygon(pivot, bearing, bearing, 0.01)

        assert len(outline) == 3
        assert len({(p.latitude, p.longitude) for p in outline[:2]}) == 2
        assert outline[-1] == pivot

    def test_finer_step_allowed(self):
        """Steps below one degree should produce more points."""
        assert len(sector_angles(0, 10, step_deg=0.5)) == 21

    def test_coarser_step_rejected(self):
        """Steps above one degree should raise InvalidGeometry."""
        with pytest.raises(InvalidGeometry):
            sector_angles(0, 90, step_deg=2)

    def test_rejects_zero_radius(self, center):
        with pytest.raises(InvalidGeometry):
            sector_polygon(center, 0, 90, 0)


# ============================================================
# Rectangle Tests
# ============================================================

class TestRectangle:
    """Tests for linear move rectangles."""

    def test_horizontal_length_spans_longitude(self, center):
        """With a horizontal length, width maps to latitude."""
        bbox = rectangle_from_center(center, 200, 100, length_is_horizontal=True)

        lat_span = bbox.northeast.latitude - bbox.southwest.latitude
        lng_span = bbox.northeast.longitude - bbox.southwest.longitude
        assert lat_span == pytest.approx(100 / METERS_PER_DEGREE)
        assert lng_span == pytest.approx(
            200 / (METERS_PER_DEGREE * math.cos(math.radians(37.0)))
        )

    def test_vertical_length_spans_latitude(self, center):
        """With a vertical length, length maps to latitude."""
        bbox = rectangle_from_center(center, 200, 100, length_is_horizontal=False)

        lat_span = bbox.northeast.latitude - bbox.southwest.latitude
        assert lat_span == pytest.approx(200 / METERS_PER_DEGREE)

    def test_centered(self, center):
        bbox = rectangle_from_center(center, 300, 50)

        assert bbox.center.latitude == pytest.approx(center.latitude)
        assert bbox.center.longitude == pytest.approx(center.longitude)

    @pytest.mark.parametrize("length,width", [(0, 10), (10, 0), (-1, 10)])
    def test_rejects_non_positive_sides(self, center, length, width):
        with pytest.raises(InvalidGeometry):
            rectangle_from_center(center, length, width)

    def test_corners(self, center):
        """Four named corners should be offered as start points."""
        bbox = rectangle_from_center(center, 200, 100)

        corners = rectangle_corners(bbox)

        assert set(corners) == {"South West", "North East", "South East", "North West"}
        assert corners["South West"] == bbox.southwest
        assert corners["North East"] == bbox.northeast
        assert corners["South East"].latitude == bbox.southwest.latitude
        assert corners["South East"].longitude == bbox.northeast.longitude

    def test_measure_round_trip(self, center):
        """Measuring a built rectangle should give back its size within 1%."""
        bbox = rectangle_from_center(center, 200, 100)

        length_m, width_m = measure_bounds(bbox)

        assert length_m == pytest.approx(200, rel=0.01)
        assert width_m == pytest.approx(100, rel=0.01)

    def test_measure_swaps_for_vertical_travel(self, center):
        bbox = rectangle_from_center(center, 200, 100)

        length_m, width_m = measure_bounds(bbox, length_is_horizontal=False)

        assert length_m == pytest.approx(100, rel=0.01)
        assert width_m == pytest.approx(200, rel=0.01)


# ============================================================
# Shape Rendering Tests
# ============================================================

class TestShapeGeometry:
    """Tests for rendering drawn shapes as GeoJSON."""

    def test_circle_is_closed_ring(self, center):
        """One vertex per degree, closed back on the first."""
        geometry = shape_geometry(CircleShape(center=center, radius_m=400))

        ring = geometry["coordinates"][0]
        assert geometry["type"] == "Polygon"
        assert len(ring) == 361
        assert ring[0] == ring[-1]
        assert ring[0][1] == pytest.approx(37.0 + 400 / METERS_PER_DEGREE)

    def test_rectangle_matches_bounding_box(self, center):
        shape = RectangleShape(center=center, length_m=200, width_m=50)
        bbox = rectangle_from_center(center, 200, 50)

        ring = shape_geometry(shape)["coordinates"][0]

        longitudes = [lon for lon, _ in ring]
        latitudes = [lat for _, lat in ring]
        assert min(longitudes) == pytest.approx(bbox.southwest.longitude)
        assert max(latitudes) == pytest.approx(bbox.northeast.latitude)
        assert len(ring) == 5

    def test_polygon_keeps_vertices(self):
        vertices = [
            GeoPoint(latitude=37.0, longitude=-120.0),
            GeoPoint(latitude=37.001, longitude=-120.0),
            GeoPoint(latitude=37.001, longitude=-119.999),
        ]

        ring = shape_geometry(PolygonShape(vertices=vertices))["coordinates"][0]

        assert list(ring[:3]) == [(-120.0, 37.0), (-120.0, 37.001), (-119.999, 37.001)]

    def test_circle_rejects_zero_radius(self, center):
        with pytest.raises(InvalidGeometry):
            shape_geometry(CircleShape(center=center, radius_m=0))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
