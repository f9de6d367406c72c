"""
API router for drawing-tool geometry.
"""
from fastapi import APIRouter

from vrizones.api.v1.models.requests import (
    AngleRequest,
    MeasureRequest,
    PointFromAngleRequest,
    RectangleRequest,
    SectorRequest,
    ShapeRequest,
)
from vrizones.api.v1.models.responses import (
    AngleResponse,
    MeasureResponse,
    PointResponse,
    RectangleResponse,
    SectorResponse,
    ShapeResponse,
)
from vrizones.config import settings
from vrizones.utils.geo_math import (
    angle_from_point,
    measure_bounds,
    point_from_angle,
    rectangle_corners,
    rectangle_from_center,
    sector_polygon,
    shape_geometry,
)


router = APIRouter(
    prefix="/geometry",
    tags=["geometry"],
)


@router.post(
    "/sector",
    response_model=SectorResponse,
    summary="Outline a center pivot sector",
    description="""
    Trace the arc of a pivot sector clockwise from the start bearing to the
    end bearing and close it with the pivot point.

    A sector whose end is smaller than its start wraps through north. Equal
    start and end bearings produce a thin wedge.
    """,
    responses={
        400: {"description": "Radius not positive or center not finite"},
    }
)
async def outline_sector(request: SectorRequest) -> SectorResponse:
    outline = sector_polygon(
        request.center,
        request.start_angle,
        request.end_angle,
        request.radius_m,
        step_deg=settings.sector_step_degrees,
        degenerate_offset=settings.degenerate_sector_offset,
    )
    return SectorResponse(outline=outline)


@router.post(
    "/point",
    response_model=PointResponse,
    summary="Project a point at a bearing and distance",
)
async def project_point(request: PointFromAngleRequest) -> PointResponse:
    return PointResponse(
        point=point_from_angle(request.center, request.angle_deg, request.radius_m)
    )


@router.post(
    "/angle",
    response_model=AngleResponse,
    summary="Bearing of a point from a center",
)
async def bearing_of_point(request: AngleRequest) -> AngleResponse:
    return AngleResponse(angle_deg=angle_from_point(request.center, request.point))


@router.post(
    "/rectangle",
    response_model=RectangleResponse,
    summary="Footprint of a linear move",
    description="""
    Build the bounding box of a linear move from its center, length and
    width, together with the four corners offered as start points.
    """,
)
async def build_rectangle(request: RectangleRequest) -> RectangleResponse:
    bbox = rectangle_from_center(
        request.center, request.length_m, request.width_m, request.length_is_horizontal
    )
    return RectangleResponse(bbox=bbox, corners=rectangle_corners(bbox))


@router.post(
    "/rectangle/measure",
    response_model=MeasureResponse,
    summary="Measure a drawn rectangle",
)
async def measure_rectangle(request: MeasureRequest) -> MeasureResponse:
    length_m, width_m = measure_bounds(request.bbox, request.length_is_horizontal)
    return MeasureResponse(length_m=length_m, width_m=width_m)


@router.post(
    "/shape",
    response_model=ShapeResponse,
    summary="GeoJSON geometry of a drawn shape",
    description="""
    Render a circle (center pivot), rectangle (linear move) or free-hand
    polygon as a GeoJSON Polygon, together with the outer measurement its
    sprinkler zones are bounded by.
    """,
    responses={
        400: {"description": "Radius, length or width not positive, or coordinates not finite"},
    }
)
async def render_shape(request: ShapeRequest) -> ShapeResponse:
    return ShapeResponse(
        geometry=shape_geometry(request.shape),
        outer_measurement=request.shape.outer_measurement,
    )
