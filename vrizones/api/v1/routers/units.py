"""
API router for irrigation unit calculations.
"""
from fastapi import APIRouter

from vrizones.api.v1.models.requests import ApplicationRateRequest
from vrizones.api.v1.models.responses import ApplicationRateResponse
from vrizones.utils.units import UnitSystem, application_rate


router = APIRouter(
    prefix="/units",
    tags=["units"],
)


@router.post(
    "/application-rate",
    response_model=ApplicationRateResponse,
    summary="Precipitation rate of a drip layout",
    description="""
    Compute PR = 231 x Q x efficiency / (row spacing x emitter spacing) in
    in/hr, or mm/hr when the SI result unit is requested. Each input may be
    given in imperial (gph, inches) or SI (lph, meters) units.
    """,
    responses={
        400: {"description": "Non-positive input or efficiency above 1"},
    }
)
async def calculate_application_rate(request: ApplicationRateRequest) -> ApplicationRateResponse:
    rate = application_rate(
        request.emitter_flow,
        request.emitter_spacing,
        request.dripline_distance,
        efficiency=request.efficiency,
        flow_unit=request.flow_unit,
        spacing_unit=request.spacing_unit,
        dripline_unit=request.dripline_unit,
        result_unit=request.result_unit,
    )
    unit = "mm/hr" if request.result_unit == UnitSystem.SI else "in/hr"
    return ApplicationRateResponse(application_rate=rate, unit=unit)
