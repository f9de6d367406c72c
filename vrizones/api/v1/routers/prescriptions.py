"""
API router for prescription map endpoints.
"""
import datetime
from typing import Annotated

from fastapi import APIRouter, Path, Query

from vrizones.api.dependencies import PrescriptionServiceDep
from vrizones.api.v1.models.requests import RateUpdateRequest
from vrizones.api.v1.models.responses import PrescriptionResponse, RateUpdateResponse
from vrizones.domain.errors import RateKeyNotFound
from vrizones.domain.models import SystemContext


router = APIRouter(
    tags=["prescriptions"],
)


@router.get(
    "/systems/{user_id}/{farm_name}/{system_name}/prescriptions",
    response_model=PrescriptionResponse,
    summary="Generate a prescription map",
    description="""
    Ask the backend for the VRI rate document of an irrigation system on a
    date and overlay it on the system's cells.

    Cells are joined to rate entries on "BearingSeqNum-DistanceSeqNum"; a
    cell without a matching entry has no rate and is drawn in the neutral
    color. The legend comes from the document's WateringColor palette,
    ascending by threshold.
    """,
    responses={
        400: {"description": "Rate document cannot be read"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "Backend returned no rate document"},
    }
)
async def generate_prescription(
    user_id: Annotated[str, Path(description="Owner of the farm")],
    farm_name: Annotated[str, Path(description="Farm name")],
    system_name: Annotated[str, Path(description="Irrigation system name")],
    date: Annotated[datetime.date, Query(description="Prescription date (YYYY-MM-DD)")],
    prescription_service: PrescriptionServiceDep,
) -> PrescriptionResponse:
    context = SystemContext(
        user_id=user_id, farm_name=farm_name, irrigation_system_name=system_name
    )
    prescription = await prescription_service.generate(context, date)
    return PrescriptionResponse(
        geojson=prescription.geojson,
        legend=prescription.legend,
        colors=prescription.colors,
        encoded_vri=prescription.document.to_base64(),
        filename=prescription.filename,
        center=prescription.center,
        speed=prescription.speed,
        max_irrigation_amount=prescription.max_irrigation_amount,
    )


@router.post(
    "/prescriptions/rates",
    response_model=RateUpdateResponse,
    summary="Edit watering rates",
    description="""
    Set one watering rate on cells given by composite key and/or by a
    selection rectangle. The edited document and the cells are returned
    together so both stay consistent.

    Keys missing from the document are listed in `missing_keys`; the other
    keys are still updated. When no key could be updated the request fails
    with 404.
    """,
    responses={
        400: {"description": "Invalid rate, unreadable document or no cell selected"},
        404: {"description": "None of the keys exist in the document"},
    }
)
async def update_rates(
    request: RateUpdateRequest,
    prescription_service: PrescriptionServiceDep,
) -> RateUpdateResponse:
    try:
        result = prescription_service.update_rates(
            request.geojson,
            request.encoded_vri,
            request.rate,
            keys=request.keys,
            region=request.region,
        )
    except RateKeyNotFound as e:
        if not e.result.updated_keys:
            raise
        result = e.result

    return RateUpdateResponse(
        geojson=result.cells,
        encoded_vri=result.document.to_base64(),
        updated_keys=result.updated_keys,
        missing_keys=result.missing_keys,
    )
