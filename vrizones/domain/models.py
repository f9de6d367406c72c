"""
Domain models for irrigation shapes, sprinkler zones, management zones and
prescription rates.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, databases, etc.).
"""
from enum import Enum
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


FeatureId = Union[int, str]


class GeoPoint(BaseModel):
    """WGS84 position in decimal degrees."""
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class BoundingBox(BaseModel):
    """Axis-aligned box given by its south-west and north-east corners."""
    model_config = ConfigDict(frozen=True)

    southwest: GeoPoint
    northeast: GeoPoint

    @classmethod
    def from_bounds(cls, bounds: tuple[float, float, float, float]) -> "BoundingBox":
        """Build from a shapely-style (min_lng, min_lat, max_lng, max_lat) tuple."""
        min_lng, min_lat, max_lng, max_lat = bounds
        return cls(
            southwest=GeoPoint(latitude=min_lat, longitude=min_lng),
            northeast=GeoPoint(latitude=max_lat, longitude=max_lng),
        )

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(min_lng, min_lat, max_lng, max_lat), the order shapely uses."""
        return (
            self.southwest.longitude,
            self.southwest.latitude,
            self.northeast.longitude,
            self.northeast.latitude,
        )

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(
            latitude=(self.southwest.latitude + self.northeast.latitude) / 2,
            longitude=(self.southwest.longitude + self.northeast.longitude) / 2,
        )


# ============================================================
# Shapes
# ============================================================

class CircleShape(BaseModel):
    """Center-pivot footprint."""
    kind: Literal["circle"] = "circle"
    center: GeoPoint
    radius_m: float

    @property
    def outer_measurement(self) -> float:
        return self.radius_m


class RectangleShape(BaseModel):
    """Linear-move footprint."""
    kind: Literal["rectangle"] = "rectangle"
    center: GeoPoint
    length_m: float
    width_m: float
    length_is_horizontal: bool = True

    @property
    def outer_measurement(self) -> float:
        # Sprinkler bands of a linear move subdivide its width
        return self.width_m


class PolygonShape(BaseModel):
    """Free-hand footprint."""
    kind: Literal["polygon"] = "polygon"
    vertices: List[GeoPoint] = Field(min_length=3)

    @property
    def outer_measurement(self) -> Optional[float]:
        return None


class Sector(BaseModel):
    """
    Angular wedge of a center pivot, in degrees clockwise from north.

    A sector may wrap through north (start > end). When start equals end the
    sector is a zero-width slice.
    """
    model_config = ConfigDict(frozen=True)

    start_angle: float = Field(ge=0, lt=360)
    end_angle: float = Field(ge=0, lt=360)

    @property
    def is_degenerate(self) -> bool:
        return self.start_angle == self.end_angle

    @property
    def span(self) -> float:
        """Swept angle in degrees, walking clockwise from start to end."""
        return (self.end_angle - self.start_angle) % 360


# ============================================================
# Sprinkler zones
# ============================================================

class ZoneChainKind(str, Enum):
    """Radial bands for a pivot, width bands for a linear move."""
    PIVOT = "pivot"
    LINEAR = "linear"


class BoundEdge(str, Enum):
    INNER = "inner"
    OUTER = "outer"


class SprinklerZone(BaseModel):
    """One radial (pivot) or width (linear) band. Blank bounds are None."""
    index: int = Field(ge=1)
    inner_bound: Optional[float] = None
    outer_bound: Optional[float] = None


# ============================================================
# Management zones
# ============================================================

class SystemContext(BaseModel):
    """Identifies one irrigation system of one farm of one user."""
    model_config = ConfigDict(frozen=True)

    user_id: FeatureId
    farm_name: str
    irrigation_system_name: str


class TreatmentMetadata(BaseModel):
    """Irrigation treatment settings shared by every cell of a zone."""
    treatment_percentage: Optional[float] = Field(default=None, ge=0)
    schedule_method: Optional[str] = None
    node_id: Optional[FeatureId] = None


class ZoneCellRef(BaseModel):
    """A member cell of a management zone with its correlation keys."""
    model_config = ConfigDict(frozen=True)

    feature_id: FeatureId
    bearing_seq: Optional[str] = None
    distance_seq: Optional[str] = None


class ManagementZone(BaseModel):
    """Named, colored, non-overlapping group of cells."""
    name: str
    color: str
    cells: List[ZoneCellRef] = Field(default_factory=list)
    treatment: TreatmentMetadata = Field(default_factory=TreatmentMetadata)

    @property
    def key(self) -> str:
        return zone_name_key(self.name)

    @property
    def feature_ids(self) -> list[str]:
        return [str(cell.feature_id) for cell in self.cells]


def zone_name_key(name: str) -> str:
    """Normalized zone name used for uniqueness checks."""
    return name.strip().lower()


class ZoneDefinition(BaseModel):
    """Zone as exchanged with the backend on create/delete."""
    context: SystemContext
    name: str
    color: str
    cells: List[ZoneCellRef]
    treatment: TreatmentMetadata = Field(default_factory=TreatmentMetadata)

    def to_backend_payload(self) -> dict:
        """Render in the field naming the backend stores zones with."""
        return {
            "mz_name": self.name,
            "color": self.color,
            "features": [
                {
                    "feature_id": cell.feature_id,
                    "bearingSeqNum": cell.bearing_seq,
                    "distanceSeqNum": cell.distance_seq,
                }
                for cell in self.cells
            ],
            "user_id": self.context.user_id,
            "farmname": self.context.farm_name,
            "irrigation_system_name": self.context.irrigation_system_name,
            "irrigation_treatment": self.treatment.treatment_percentage,
            "irrigation_schedule_method": self.treatment.schedule_method,
            "nodeid": self.treatment.node_id,
        }

    @classmethod
    def from_backend_payload(cls, data: dict, context: SystemContext) -> "ZoneDefinition":
        """Parse a zone as returned by the backend's management-zone listing."""
        cells = [
            ZoneCellRef(
                feature_id=item["feature_id"],
                bearing_seq=_optional_str(item.get("bearingSeqNum")),
                distance_seq=_optional_str(item.get("distanceSeqNum")),
            )
            for item in data.get("features") or []
        ]
        treatment = TreatmentMetadata(
            treatment_percentage=_optional_float(data.get("irrigation_treatment")),
            schedule_method=data.get("irrigation_schedule_method") or None,
            node_id=data.get("nodeid") or None,
        )
        return cls(
            context=context,
            name=data["mz_name"],
            color=data.get("color") or "#ff0000",
            cells=cells,
            treatment=treatment,
        )


def _optional_str(value) -> Optional[str]:
    return None if value is None else str(value)


def _optional_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


class CellStyle(BaseModel):
    """Data-level style of one cell on the zone map."""
    fill_color: str
    stroke_color: str
    stroke_weight: int
    fill_opacity: float


# ============================================================
# Prescriptions
# ============================================================

class RateEntry(BaseModel):
    """Watering rate prescribed for one cell."""
    model_config = ConfigDict(frozen=True)

    bearing_seq: str
    distance_seq: str
    rate_percent: float

    @property
    def key(self) -> str:
        return composite_key(self.bearing_seq, self.distance_seq)


def composite_key(bearing_seq, distance_seq) -> str:
    """Join key between cells and rate entries."""
    return f"{bearing_seq}-{distance_seq}"


class LegendEntry(BaseModel):
    """Color used for rates up to and including `threshold`."""
    model_config = ConfigDict(frozen=True)

    threshold: float
    color: str
    label: str

    @field_validator("color")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("legend color cannot be empty")
        return value
