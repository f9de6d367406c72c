"""
API request models using Pydantic.
"""
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, Field

from vrizones.domain.models import (
    BoundingBox,
    CircleShape,
    FeatureId,
    GeoPoint,
    PolygonShape,
    RectangleShape,
    TreatmentMetadata,
    ZoneChainKind,
)
from vrizones.utils.units import DEFAULT_IRRIGATION_EFFICIENCY, UnitSystem


class SectorRequest(BaseModel):
    """Center pivot sector to outline."""
    center: GeoPoint
    radius_m: float = Field(description="Pivot radius in meters")
    start_angle: float = Field(description="Start bearing, degrees clockwise from north")
    end_angle: float = Field(description="End bearing, degrees clockwise from north")


class PointFromAngleRequest(BaseModel):
    center: GeoPoint
    angle_deg: float
    radius_m: float


class AngleRequest(BaseModel):
    """Bearing of a point as seen from a center, e.g. a dragged angle marker."""
    center: GeoPoint
    point: GeoPoint


class RectangleRequest(BaseModel):
    """Linear move footprint given by its center and dimensions."""
    center: GeoPoint
    length_m: float = Field(description="Length of travel in meters")
    width_m: float = Field(description="Span of the machine in meters")
    length_is_horizontal: bool = Field(
        default=True,
        description="True when the length runs east-west"
    )


class ShapeRequest(BaseModel):
    """Shape drawn on the map or entered numerically."""
    shape: Annotated[
        Union[CircleShape, RectangleShape, PolygonShape],
        Field(discriminator="kind"),
    ]


class MeasureRequest(BaseModel):
    """Drawn rectangle to measure."""
    bbox: BoundingBox
    length_is_horizontal: bool = True


class SprinklerZoneInput(BaseModel):
    """One sprinkler zone as typed in; blank bounds are null."""
    inner_bound: Optional[float] = None
    outer_bound: Optional[float] = None


class SprinklerZoneValidationRequest(BaseModel):
    kind: ZoneChainKind = ZoneChainKind.PIVOT
    outer_measurement: float = Field(description="Pivot radius or linear-move width in meters")
    zones: List[SprinklerZoneInput] = Field(min_length=1)


class CenterPivotRequest(BaseModel):
    """Center pivot to create."""
    user_id: FeatureId
    farm_name: str
    pivot_name: str
    center: GeoPoint
    radius_m: float
    start_angle: float = Field(ge=0, lt=360)
    end_angle: float = Field(ge=0, lt=360)
    maximum_speed: float
    water_application: float = Field(description="Water applied at maximum speed")
    space_between_nozzles: float
    sprinkler_zones: List[SprinklerZoneInput] = Field(min_length=1)


class LinearMoveRequest(BaseModel):
    """Linear move to create."""
    user_id: FeatureId
    farm_name: str
    system_name: str
    center: GeoPoint
    length_m: float
    width_m: float
    length_is_horizontal: bool = True
    start_corner: str = Field(
        description="Corner the machine starts from",
        examples=["South West"]
    )
    sprinkler_zones: List[SprinklerZoneInput] = Field(min_length=1)


class CreateZoneRequest(BaseModel):
    """Management zone to create from cell ids and/or a selection rectangle."""
    name: str
    color: str = Field(examples=["#ff0000"])
    cell_ids: List[FeatureId] = Field(default_factory=list)
    region: Optional[BoundingBox] = None
    treatment: Optional[TreatmentMetadata] = None


class RateUpdateRequest(BaseModel):
    """Manual edit of a prescription: one rate for a set of cells."""
    geojson: dict = Field(description="Cell collection shown on the map")
    encoded_vri: str = Field(description="Base64 encoded rate document being edited")
    rate: float = Field(description="New watering rate in percent")
    keys: List[str] = Field(
        default_factory=list,
        description="Composite keys 'bearing-distance' of the cells to update"
    )
    region: Optional[BoundingBox] = None


class ApplicationRateRequest(BaseModel):
    """Drip layout whose precipitation rate is computed."""
    emitter_flow: float = Field(description="Flow per emitter (gph or lph)")
    emitter_spacing: float = Field(description="Distance between emitters (in or m)")
    dripline_distance: float = Field(description="Distance between drip lines (in or m)")
    efficiency: float = DEFAULT_IRRIGATION_EFFICIENCY
    flow_unit: UnitSystem = UnitSystem.IMPERIAL
    spacing_unit: UnitSystem = UnitSystem.IMPERIAL
    dripline_unit: UnitSystem = UnitSystem.IMPERIAL
    result_unit: UnitSystem = UnitSystem.IMPERIAL
