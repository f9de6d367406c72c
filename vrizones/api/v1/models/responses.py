"""
API response models using Pydantic.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from vrizones.domain.models import (
    BoundingBox,
    CellStyle,
    GeoPoint,
    LegendEntry,
    SprinklerZone,
    TreatmentMetadata,
)


class SectorResponse(BaseModel):
    """Outline of a pivot sector."""
    outline: List[GeoPoint] = Field(
        description="Arc points clockwise from the start bearing, closed by the center"
    )


class PointResponse(BaseModel):
    point: GeoPoint


class AngleResponse(BaseModel):
    angle_deg: float = Field(description="Bearing in [0, 360) degrees clockwise from north")


class RectangleResponse(BaseModel):
    """Linear move footprint and its candidate start points."""
    bbox: BoundingBox
    corners: Dict[str, GeoPoint]

    class Config:
        json_schema_extra = {
            "example": {
                "bbox": {
                    "southwest": {"latitude": 36.9991, "longitude": -120.0011},
                    "northeast": {"latitude": 37.0009, "longitude": -119.9989},
                },
                "corners": {
                    "South West": {"latitude": 36.9991, "longitude": -120.0011},
                    "North East": {"latitude": 37.0009, "longitude": -119.9989},
                    "South East": {"latitude": 36.9991, "longitude": -119.9989},
                    "North West": {"latitude": 37.0009, "longitude": -120.0011},
                },
            }
        }


class ShapeResponse(BaseModel):
    geometry: Dict[str, Any] = Field(description="GeoJSON Polygon in (longitude, latitude)")
    outer_measurement: Optional[float] = Field(
        default=None,
        description="Radius of a pivot or width of a linear move; none for free-hand polygons"
    )


class MeasureResponse(BaseModel):
    length_m: float
    width_m: float


class ChainProblem(BaseModel):
    """One inconsistency of a sprinkler zone chain."""
    type: str = Field(examples=["Discontinuous"])
    zone_index: Optional[int] = None
    message: str


class SprinklerZoneValidationResponse(BaseModel):
    valid: bool
    zones: List[SprinklerZone]
    problems: List[ChainProblem]


class SubmissionResponse(BaseModel):
    """Irrigation system handed to the backend."""
    system_name: str
    payload: Dict[str, Any] = Field(description="Body sent to the backend")
    backend_response: Any = None


class ZoneSummary(BaseModel):
    """Management zone as shown in the map legend."""
    name: str
    color: str
    cell_ids: List[str]
    centroid: GeoPoint
    treatment: TreatmentMetadata


class ZoneMapResponse(BaseModel):
    """Cells of a system with their zones and styles."""
    geojson: Dict[str, Any]
    center: Optional[GeoPoint] = None
    zones: List[ZoneSummary]
    styles: Dict[str, CellStyle] = Field(description="Style of every cell keyed by feature id")
    skipped_zones: List[str] = Field(
        default_factory=list,
        description="Stored zones that conflict with the current cells"
    )


class ZoneDeletedResponse(BaseModel):
    name: str
    released_cell_ids: List[str]


class PrescriptionResponse(BaseModel):
    """Prescription map of a system on a date."""
    geojson: Dict[str, Any] = Field(description="Cells with their wateringratepercent")
    legend: List[LegendEntry]
    colors: Dict[str, str] = Field(description="Fill color keyed by 'bearing-distance'")
    encoded_vri: str
    filename: str
    center: Optional[GeoPoint] = None
    speed: Optional[int] = None
    max_irrigation_amount: Optional[float] = None


class RateUpdateResponse(BaseModel):
    """Outcome of a manual rate edit."""
    geojson: Dict[str, Any]
    encoded_vri: str
    updated_keys: List[str]
    missing_keys: List[str] = Field(default_factory=list)


class ApplicationRateResponse(BaseModel):
    application_rate: float
    unit: str = Field(examples=["in/hr", "mm/hr"])
