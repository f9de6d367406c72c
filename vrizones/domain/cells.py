"""
Cell parsing: turn GeoJSON features into Cells with a feature id,
correlation keys and a bounding box.

Feature id priority:
    1. feature["id"]
    2. properties["id"]
    3. properties["polygon_id"]
    4. properties["feature_id"]
    5. position of the feature in the collection (not stable across reloads)

Bearing sequence number priority:
    1. properties["linear_zone_bearing"]["BearingSeqNum"]
    2. properties["linear_zone_bearing"]["bearingSeqNum"]
    3. properties["linear_zone_bearing"]["SeqNum"]
    4. properties["BearingSeqNum"]
    5. properties["bearingSeqNum"]

Distance sequence number priority mirrors the bearing list with
"linear_zone_distance" / "DistanceSeqNum".

The first accessor that yields a value other than None wins.
"""
import logging
from typing import Any, Callable, Optional, Sequence

from pydantic import BaseModel, ConfigDict
from shapely.geometry import shape

from vrizones.domain.errors import UnstableCellId
from vrizones.domain.models import FeatureId, ZoneCellRef, composite_key


logger = logging.getLogger(__name__)

Accessor = Callable[[dict], Any]


def _nested(container: str, key: str) -> Accessor:
    def access(properties: dict) -> Any:
        nested = properties.get(container)
        if isinstance(nested, dict):
            return nested.get(key)
        return None
    access.__name__ = f"{container}.{key}"
    return access


def _flat(key: str) -> Accessor:
    def access(properties: dict) -> Any:
        return properties.get(key)
    access.__name__ = key
    return access


FEATURE_ID_PROPERTIES: tuple[str, ...] = ("id", "polygon_id", "feature_id")

BEARING_ACCESSORS: tuple[Accessor, ...] = (
    _nested("linear_zone_bearing", "BearingSeqNum"),
    _nested("linear_zone_bearing", "bearingSeqNum"),
    _nested("linear_zone_bearing", "SeqNum"),
    _flat("BearingSeqNum"),
    _flat("bearingSeqNum"),
)

DISTANCE_ACCESSORS: tuple[Accessor, ...] = (
    _nested("linear_zone_distance", "DistanceSeqNum"),
    _nested("linear_zone_distance", "distanceSeqNum"),
    _nested("linear_zone_distance", "SeqNum"),
    _flat("DistanceSeqNum"),
    _flat("distanceSeqNum"),
)


def first_defined(properties: dict, accessors: Sequence[Accessor]) -> Any:
    """Evaluate accessors in order and return the first non-None value."""
    for accessor in accessors:
        value = accessor(properties)
        if value is not None:
            return value
    return None


def normalize_seq(value: Any) -> Optional[str]:
    """
    Render a sequence number the way rate documents spell it.

    Integral floats lose their fractional part so 3.0 and "3" join.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return text or None


class Cell(BaseModel):
    """One subdivision of the irrigated area."""
    model_config = ConfigDict(frozen=True)

    feature_id: FeatureId
    bearing_seq: Optional[str] = None
    distance_seq: Optional[str] = None
    bounds: tuple[float, float, float, float]
    id_is_positional: bool = False
    feature: dict

    @property
    def key(self) -> str:
        """Registry key: feature ids compare as strings."""
        return str(self.feature_id)

    @property
    def rate_key(self) -> Optional[str]:
        """Composite join key, or None when either correlation key is missing."""
        if self.bearing_seq is None or self.distance_seq is None:
            return None
        return composite_key(self.bearing_seq, self.distance_seq)

    def to_ref(self) -> ZoneCellRef:
        return ZoneCellRef(
            feature_id=self.feature_id,
            bearing_seq=self.bearing_seq,
            distance_seq=self.distance_seq,
        )


def correlation_keys(feature: dict) -> tuple[Optional[str], Optional[str]]:
    """Return (bearing_seq, distance_seq) of a GeoJSON feature."""
    properties = feature.get("properties") or {}
    return (
        normalize_seq(first_defined(properties, BEARING_ACCESSORS)),
        normalize_seq(first_defined(properties, DISTANCE_ACCESSORS)),
    )


def resolve_feature_id(feature: dict, index: int) -> tuple[FeatureId, bool]:
    """Return (feature_id, is_positional) following the documented priority."""
    if feature.get("id") is not None:
        return feature["id"], False
    properties = feature.get("properties") or {}
    for name in FEATURE_ID_PROPERTIES:
        if properties.get(name) is not None:
            return properties[name], False
    return index, True


def feature_bounds(feature: dict) -> Optional[tuple[float, float, float, float]]:
    """Bounding box of a feature, or None when it has no (or an empty) geometry."""
    geometry = feature.get("geometry")
    if not geometry:
        return None
    parsed = shape(geometry)
    if parsed.is_empty:
        return None
    return tuple(parsed.bounds)


def parse_cell(feature: dict, index: int) -> Optional[Cell]:
    """Cell of a feature; None for features without a geometry to draw."""
    bounds = feature_bounds(feature)
    if bounds is None:
        return None
    feature_id, positional = resolve_feature_id(feature, index)
    bearing_seq, distance_seq = correlation_keys(feature)
    return Cell(
        feature_id=feature_id,
        bearing_seq=bearing_seq,
        distance_seq=distance_seq,
        bounds=bounds,
        id_is_positional=positional,
        feature=feature,
    )


def parse_cells(collection: dict, require_stable_ids: bool = False) -> list[Cell]:
    """
    Parse a GeoJSON FeatureCollection into cells.

    Features whose geometry is null, missing or empty cannot be drawn or
    selected and are left out. Positional ids still count them, so the
    remaining cells keep the ids they would have had.

    Args:
        collection: FeatureCollection dictionary
        require_stable_ids: Reject features that would get a positional id

    Returns:
        Cells in collection order

    Raises:
        UnstableCellId: If require_stable_ids is set and a feature has no id
        ValueError: If the collection has no features array
    """
    features = collection.get("features")
    if features is None:
        raise ValueError("Invalid GeoJSON data: features property is missing")

    cells = []
    for index, feature in enumerate(features):
        cell = parse_cell(feature, index)
        if cell is None:
            logger.debug(f"Skipping feature {index} without geometry")
            continue
        if cell.id_is_positional and require_stable_ids:
            raise UnstableCellId(index)
        cells.append(cell)
    return cells
