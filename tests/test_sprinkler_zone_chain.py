"""
Unit tests for chained sprinkler zones.

Tests cover:
- Zone count changes and bound inheritance
- The locked outer bound of the last zone
- Validation order and error types
- Backend payloads for pivots and linear moves
"""
import pytest

from vrizones.domain.errors import (
    BoundExceedsEnvelope,
    Discontinuous,
    InvalidGeometry,
    InvalidZoneCount,
    InvertedBounds,
    LockedBound,
    NonPositiveBound,
    ZoneChainError,
)
from vrizones.domain.models import (
    BoundEdge,
    CircleShape,
    GeoPoint,
    PolygonShape,
    RectangleShape,
    ZoneChainKind,
)
from vrizones.services.domain.sprinkler_zone_chain import SprinklerZoneChain


@pytest.fixture
def three_zone_chain() -> SprinklerZoneChain:
    """100m pivot with zones 0-40, 40-70, 70-100."""
    return SprinklerZoneChain.from_bounds(100, [(0, 40), (40, 70), (70, 100)])


# ============================================================
# Construction Tests
# ============================================================

class TestChainConstruction:
    """Tests for building a chain."""

    def test_single_zone_covers_envelope(self):
        """A new chain has one zone from 0 to the outer measurement."""
        chain = SprinklerZoneChain(250)

        assert chain.zone_count == 1
        assert chain.zone(1).inner_bound == 0
        assert chain.zone(1).outer_bound == 250
        assert chain.is_valid

    @pytest.mark.parametrize("outer", [0, -10, float("nan")])
    def test_invalid_envelope(self, outer):
        with pytest.raises(InvalidGeometry):
            SprinklerZoneChain(outer)

    def test_from_bounds_ignores_last_outer(self):
        """Whatever the last pair says, the last zone ends at the envelope."""
        chain = SprinklerZoneChain.from_bounds(100, [(0, 50), (50, 80)])

        assert chain.zone(2).outer_bound == 100

    def test_zones_are_copies(self, three_zone_chain):
        """Editing a returned zone should not change the chain."""
        zone = three_zone_chain.zones[0]
        zone.outer_bound = 5

        assert three_zone_chain.zone(1).outer_bound == 40

    def test_envelope_from_shape(self):
        """Pivots are bounded by their radius, linear moves by their width."""
        center = GeoPoint(latitude=37.0, longitude=-120.0)
        circle = CircleShape(center=center, radius_m=400)
        rectangle = RectangleShape(center=center, length_m=800, width_m=60)
        polygon = PolygonShape(vertices=[center, center, center])

        assert SprinklerZoneChain(circle.outer_measurement).zone(1).outer_bound == 400
        assert SprinklerZoneChain(rectangle.outer_measurement).zone(1).outer_bound == 60
        assert polygon.outer_measurement is None

    def test_zone_index_out_of_range(self, three_zone_chain):
        with pytest.raises(ZoneChainError):
            three_zone_chain.zone(4)


# ============================================================
# Zone Count Tests
# ============================================================

class TestZoneCount:
    """Tests for changing the number of zones."""

    def test_grow_keeps_existing_bounds(self, three_zone_chain):
        """Existing zones keep their bounds when zones are added."""
        three_zone_chain.set_zone_count(4)

        zones = three_zone_chain.zones
        assert [(z.inner_bound, z.outer_bound) for z in zones[:2]] == [(0, 40), (40, 70)]

    def test_new_zone_inherits_inner_bound(self):
        """A new zone starts where the previous one ends and is otherwise blank."""
        chain = SprinklerZoneChain.from_bounds(100, [(0, 40), (40, 100)])

        chain.set_zone_count(4)

        assert chain.zone(3).inner_bound == chain.zone(2).outer_bound
        assert chain.zone(3).outer_bound is None
        assert chain.zone(4).outer_bound == 100

    def test_shrink_forces_last_outer_to_envelope(self, three_zone_chain):
        """The new last zone is stretched to the outer measurement."""
        three_zone_chain.set_zone_count(2)

        assert three_zone_chain.zone_count == 2
        assert three_zone_chain.zone(2).outer_bound == 100

    @pytest.mark.parametrize("count", [0, -1, 1.5, True])
    def test_invalid_count(self, three_zone_chain, count):
        with pytest.raises(InvalidZoneCount):
            three_zone_chain.set_zone_count(count)

    def test_outer_measurement_moves_last_zone(self, three_zone_chain):
        three_zone_chain.set_outer_measurement(120)

        assert three_zone_chain.zone(3).outer_bound == 120


# ============================================================
# Bound Editing Tests
# ============================================================

class TestZoneBounds:
    """Tests for editing one bound at a time."""

    def test_last_outer_bound_is_locked(self, three_zone_chain):
        with pytest.raises(LockedBound):
            three_zone_chain.set_zone_bound(3, 90, BoundEdge.OUTER)

    def test_set_outer_does_not_touch_next_zone(self, three_zone_chain):
        """Bounds are not auto-corrected."""
        three_zone_chain.set_zone_bound(1, 35)

        assert three_zone_chain.zone(2).inner_bound == 40

    def test_chain_copies_outer_to_next_inner(self, three_zone_chain):
        three_zone_chain.set_zone_bound(1, 35, chain=True)

        assert three_zone_chain.zone(2).inner_bound == 35
        assert three_zone_chain.is_valid

    def test_non_number_rejected(self, three_zone_chain):
        with pytest.raises(NonPositiveBound):
            three_zone_chain.set_zone_bound(1, "forty")

    def test_blank_bound_allowed_but_invalid(self, three_zone_chain):
        """Blanking a bound is accepted, validation then reports it."""
        three_zone_chain.set_zone_bound(2, None, "inner")

        with pytest.raises(NonPositiveBound):
            three_zone_chain.validate()


# ============================================================
# Validation Tests
# ============================================================

class TestValidation:
    """Tests for chain validation."""

    def test_chained_zones_validate(self, three_zone_chain):
        """0-40, 40-70, 70-100 on a 100m radius is valid."""
        three_zone_chain.validate()

        zones = three_zone_chain.zones
        for current, following in zip(zones, zones[1:]):
            assert current.outer_bound == following.inner_bound
        assert zones[-1].outer_bound == three_zone_chain.outer_measurement

    def test_unchained_edit_is_discontinuous(self, three_zone_chain):
        """Changing zone 2's outer bound to 60 alone breaks the chain."""
        three_zone_chain.set_zone_bound(2, 60, BoundEdge.OUTER)

        with pytest.raises(Discontinuous) as exc_info:
            three_zone_chain.validate()

        assert exc_info.value.zone_index == 2

    def test_zero_bound_after_first_zone(self, three_zone_chain):
        three_zone_chain.set_zone_bound(2, 0, BoundEdge.INNER)

        with pytest.raises(NonPositiveBound):
            three_zone_chain.validate()

    def test_bound_beyond_envelope(self, three_zone_chain):
        three_zone_chain.set_zone_bound(2, 120, BoundEdge.OUTER, chain=True)

        with pytest.raises(BoundExceedsEnvelope):
            three_zone_chain.validate()

    def test_inverted_zone(self, three_zone_chain):
        three_zone_chain.set_zone_bound(2, 30, BoundEdge.OUTER, chain=True)

        with pytest.raises(InvertedBounds):
            three_zone_chain.validate()

    def test_problems_are_ordered(self, three_zone_chain):
        """Non-positive bounds are reported before gaps."""
        three_zone_chain.set_zone_bound(2, -5, BoundEdge.INNER)

        problems = three_zone_chain.problems()

        assert isinstance(problems[0], NonPositiveBound)
        assert any(isinstance(problem, Discontinuous) for problem in problems)

    def test_tolerance_on_typed_bounds(self):
        """Float noise below the tolerance is not a gap."""
        chain = SprinklerZoneChain.from_bounds(1.0, [(0, 0.3), (0.1 + 0.2, 1.0)])

        assert chain.is_valid


# ============================================================
# Payload Tests
# ============================================================

class TestPayload:
    """Tests for the backend payloads."""

    def test_pivot_payload(self, three_zone_chain):
        assert three_zone_chain.to_payload() == [
            {"initial_radius": 0, "final_radius": 40},
            {"initial_radius": 40, "final_radius": 70},
            {"initial_radius": 70, "final_radius": 100},
        ]

    def test_linear_payload(self):
        chain = SprinklerZoneChain.from_bounds(
            30, [(0, 10), (10, 30)], kind=ZoneChainKind.LINEAR
        )

        assert chain.to_payload() == {"1": [0, 10], "2": [10, 30]}

    def test_invalid_chain_has_no_payload(self, three_zone_chain):
        three_zone_chain.set_zone_bound(2, 60)

        with pytest.raises(Discontinuous):
            three_zone_chain.to_payload()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
