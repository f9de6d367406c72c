"""
API router for creating irrigation systems.
"""
from fastapi import APIRouter, status

from vrizones.api.dependencies import IrrigationSystemServiceDep
from vrizones.api.v1.models.requests import CenterPivotRequest, LinearMoveRequest
from vrizones.api.v1.models.responses import SubmissionResponse
from vrizones.api.v1.routers.sprinkler_zones import build_chain
from vrizones.domain.models import (
    RectangleShape,
    Sector,
    SystemContext,
    ZoneChainKind,
)


router = APIRouter(
    prefix="/irrigation-systems",
    tags=["irrigation-systems"],
)


@router.post(
    "/center-pivots",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a center pivot",
    description="""
    Validate a center pivot (center, radius, sector and sprinkler zones) and
    submit it to the backend, which generates its cell collection.
    """,
    responses={
        400: {"description": "Invalid geometry or inconsistent sprinkler zones"},
    }
)
async def create_center_pivot(
    request: CenterPivotRequest,
    service: IrrigationSystemServiceDep,
) -> SubmissionResponse:
    context = SystemContext(
        user_id=request.user_id,
        farm_name=request.farm_name,
        irrigation_system_name=request.pivot_name,
    )
    submission = await service.submit_center_pivot(
        context,
        center=request.center,
        radius_m=request.radius_m,
        sector=Sector(start_angle=request.start_angle, end_angle=request.end_angle),
        chain=build_chain(request.radius_m, request.sprinkler_zones, ZoneChainKind.PIVOT),
        maximum_speed=request.maximum_speed,
        water_application=request.water_application,
        space_between_nozzles=request.space_between_nozzles,
    )
    return SubmissionResponse(
        system_name=request.pivot_name,
        payload=submission.payload,
        backend_response=submission.backend_response,
    )


@router.post(
    "/linear-moves",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a linear move",
    description="""
    Validate a linear move (rectangle, start corner and sprinkler zones
    across its width) and submit it to the backend.
    """,
    responses={
        400: {"description": "Invalid geometry, unknown start corner or inconsistent zones"},
    }
)
async def create_linear_move(
    request: LinearMoveRequest,
    service: IrrigationSystemServiceDep,
) -> SubmissionResponse:
    context = SystemContext(
        user_id=request.user_id,
        farm_name=request.farm_name,
        irrigation_system_name=request.system_name,
    )
    shape = RectangleShape(
        center=request.center,
        length_m=request.length_m,
        width_m=request.width_m,
        length_is_horizontal=request.length_is_horizontal,
    )
    chain = build_chain(request.width_m, request.sprinkler_zones, ZoneChainKind.LINEAR)
    submission = await service.submit_linear_move(context, shape, request.start_corner, chain)
    return SubmissionResponse(
        system_name=request.system_name,
        payload=submission.payload,
        backend_response=submission.backend_response,
    )
