"""
Domain service: chained sprinkler zones of a pivot or linear move.

A chain of N zones subdivides the radius of a center pivot (radial bands)
or the width of a linear move (parallel bands). Zone i ends where zone i+1
starts and the last zone always ends at the shape's outer measurement.

Bounds are edited one at a time and never auto-corrected; inconsistencies
are reported by validate()/problems() so the caller can show them.
"""
import logging
import math
from typing import Any, List, Optional, Sequence, Tuple, Union

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
from vrizones.domain.models import BoundEdge, SprinklerZone, ZoneChainKind

logger = logging.getLogger(__name__)

# Tolerance when comparing bounds that were typed in by hand
BOUND_TOLERANCE = 1e-9


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _usable(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


class SprinklerZoneChain:
    """
    Ordered sprinkler zones bounded by an outer measurement.

    Zone 1 starts at 0 (the pivot point or the near edge of a linear move);
    every other bound must be strictly positive.
    """

    def __init__(
        self,
        outer_measurement: float,
        zone_count: int = 1,
        kind: ZoneChainKind = ZoneChainKind.PIVOT,
    ):
        """
        Args:
            outer_measurement: Pivot radius or linear-move width in meters
            zone_count: Initial number of zones
            kind: Pivot (radial bands) or linear (width bands)
        """
        self._check_envelope(outer_measurement)
        self.kind = ZoneChainKind(kind)
        self._outer = float(outer_measurement)
        self._zones: List[SprinklerZone] = [
            SprinklerZone(index=1, inner_bound=0.0, outer_bound=self._outer)
        ]
        if zone_count != 1:
            self.set_zone_count(zone_count)

    @classmethod
    def from_bounds(
        cls,
        outer_measurement: float,
        bounds: Sequence[Tuple[Optional[float], Optional[float]]],
        kind: ZoneChainKind = ZoneChainKind.PIVOT,
    ) -> "SprinklerZoneChain":
        """
        Build a chain from (inner, outer) pairs as typed by the user.

        The last outer bound is locked to the envelope, so whatever the
        last pair carries there is ignored.
        """
        chain = cls(outer_measurement, zone_count=max(len(bounds), 1), kind=kind)
        for index, (inner, outer) in enumerate(bounds, start=1):
            chain.set_zone_bound(index, inner, BoundEdge.INNER)
            if index < len(bounds):
                chain.set_zone_bound(index, outer, BoundEdge.OUTER)
        return chain

    @staticmethod
    def _check_envelope(value: Any) -> None:
        if not _is_number(value) or not math.isfinite(value) or value <= 0:
            raise InvalidGeometry(f"Outer measurement must be a positive number, got {value}")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def outer_measurement(self) -> float:
        return self._outer

    @property
    def zone_count(self) -> int:
        return len(self._zones)

    @property
    def zones(self) -> List[SprinklerZone]:
        """Copies of the zones, ordered by index."""
        return [zone.model_copy() for zone in self._zones]

    def zone(self, index: int) -> SprinklerZone:
        return self._zone_at(index).model_copy()

    def _zone_at(self, index: int) -> SprinklerZone:
        if not isinstance(index, int) or not 1 <= index <= len(self._zones):
            raise ZoneChainError(
                f"Zone index {index} is out of range 1..{len(self._zones)}", zone_index=index
            )
        return self._zones[index - 1]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_outer_measurement(self, value: float) -> None:
        """Resize the envelope; the last zone follows it."""
        self._check_envelope(value)
        self._outer = float(value)
        self._zones[-1].outer_bound = self._outer
        logger.debug(f"Outer measurement set to {self._outer}m")

    def set_zone_count(self, count: int) -> None:
        """
        Change the number of zones.

        Zones that exist before and after keep their bounds. A new zone
        starts where the previous one ends and has a blank outer bound,
        except the last zone whose outer bound is the envelope.

        Raises:
            InvalidZoneCount: If count is not an integer >= 1
        """
        if not isinstance(count, int) or isinstance(count, bool) or count < 1:
            raise InvalidZoneCount(f"Zone count must be an integer >= 1, got {count}")

        zones = [zone.model_copy() for zone in self._zones[:count]]
        for index in range(len(zones) + 1, count + 1):
            zones.append(SprinklerZone(index=index, inner_bound=zones[-1].outer_bound))
        # A former last zone keeps the envelope as its outer bound
        zones[-1].outer_bound = self._outer
        self._zones = zones
        logger.debug(f"Zone count set to {count}")

    def set_zone_bound(
        self,
        index: int,
        bound: Optional[float],
        edge: Union[BoundEdge, str] = BoundEdge.OUTER,
        chain: bool = False,
    ) -> None:
        """
        Set exactly one bound of one zone.

        Args:
            index: 1-based zone index
            bound: Distance in meters, or None to blank the bound
            edge: Which bound to set
            chain: Also copy an outer bound into the next zone's inner bound

        Raises:
            LockedBound: If the last zone's outer bound is targeted
            NonPositiveBound: If bound is neither None nor a number
            ZoneChainError: If index is out of range
        """
        edge = BoundEdge(edge)
        zone = self._zone_at(index)

        if bound is not None and not _is_number(bound):
            raise NonPositiveBound(f"Zone {index} bound must be a number, got {bound!r}", index)
        value = None if bound is None else float(bound)

        if edge == BoundEdge.OUTER:
            if index == len(self._zones):
                raise LockedBound(
                    f"Zone {index} outer bound is locked to the outer measurement", index
                )
            zone.outer_bound = value
            if chain:
                self._zones[index].inner_bound = value
        else:
            zone.inner_bound = value

        logger.debug(f"Zone {index} {edge.value} bound set to {value}")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def problems(self) -> List[ZoneChainError]:
        """
        Every inconsistency of the chain, most fundamental first.

        Order: non-positive or blank bounds, bounds beyond the envelope,
        inverted zones, then gaps or overlaps between neighbours.
        """
        non_positive: List[ZoneChainError] = []
        exceeding: List[ZoneChainError] = []
        inverted: List[ZoneChainError] = []
        gaps: List[ZoneChainError] = []

        for zone in self._zones:
            inner, outer = zone.inner_bound, zone.outer_bound
            inner_floor_ok = (
                _usable(inner) and (inner > 0 or (zone.index == 1 and inner == 0))
            )
            if not inner_floor_ok:
                non_positive.append(NonPositiveBound(
                    f"Zone {zone.index} inner bound must be greater than 0, got {inner}",
                    zone.index,
                ))
            if not (_usable(outer) and outer > 0):
                non_positive.append(NonPositiveBound(
                    f"Zone {zone.index} outer bound must be greater than 0, got {outer}",
                    zone.index,
                ))

            for label, value in (("inner", inner), ("outer", outer)):
                if _usable(value) and value > self._outer + BOUND_TOLERANCE:
                    exceeding.append(BoundExceedsEnvelope(
                        f"Zone {zone.index} {label} bound {value} exceeds "
                        f"the outer measurement {self._outer}",
                        zone.index,
                    ))

            if _usable(inner) and _usable(outer) and inner > outer + BOUND_TOLERANCE:
                inverted.append(InvertedBounds(
                    f"Zone {zone.index} inner bound {inner} is greater than outer bound {outer}",
                    zone.index,
                ))

        for current, following in zip(self._zones, self._zones[1:]):
            outer, inner = current.outer_bound, following.inner_bound
            if not (_usable(outer) and _usable(inner)):
                continue
            if not math.isclose(outer, inner, rel_tol=0, abs_tol=BOUND_TOLERANCE):
                gaps.append(Discontinuous(
                    f"Zone {current.index} ends at {outer} but zone {following.index} "
                    f"starts at {inner}",
                    current.index,
                ))

        return non_positive + exceeding + inverted + gaps

    def validate(self) -> None:
        """
        Raise the first problem of the chain.

        Raises:
            NonPositiveBound, BoundExceedsEnvelope, InvertedBounds, Discontinuous
        """
        problems = self.problems()
        if problems:
            raise problems[0]

    @property
    def is_valid(self) -> bool:
        return not self.problems()

    # ------------------------------------------------------------------
    # Backend payload
    # ------------------------------------------------------------------

    def to_payload(self) -> Union[List[dict], dict]:
        """
        Validated zones in the shape the backend stores them.

        Pivot: [{"initial_radius", "final_radius"}, ...]
        Linear: {"<index>": [initial_width, final_width], ...}
        """
        self.validate()
        if self.kind == ZoneChainKind.PIVOT:
            return [
                {"initial_radius": zone.inner_bound, "final_radius": zone.outer_bound}
                for zone in self._zones
            ]
        return {
            str(zone.index): [zone.inner_bound, zone.outer_bound]
            for zone in self._zones
        }
