"""
API router for sprinkler zone validation.
"""
from fastapi import APIRouter

from vrizones.api.v1.models.requests import SprinklerZoneValidationRequest
from vrizones.api.v1.models.responses import ChainProblem, SprinklerZoneValidationResponse
from vrizones.services.domain.sprinkler_zone_chain import SprinklerZoneChain


router = APIRouter(
    prefix="/sprinkler-zones",
    tags=["sprinkler-zones"],
)


def build_chain(outer_measurement, zones, kind) -> SprinklerZoneChain:
    """Chain from request zones; the last outer bound follows the envelope."""
    return SprinklerZoneChain.from_bounds(
        outer_measurement,
        [(zone.inner_bound, zone.outer_bound) for zone in zones],
        kind=kind,
    )


@router.post(
    "/validate",
    response_model=SprinklerZoneValidationResponse,
    summary="Validate a sprinkler zone chain",
    description="""
    Check a chain of sprinkler zones against the pivot radius or linear
    width and report every problem: blank or non-positive bounds, bounds
    beyond the outer measurement, inverted zones and gaps between zones.
    """,
)
async def validate_sprinkler_zones(
    request: SprinklerZoneValidationRequest,
) -> SprinklerZoneValidationResponse:
    chain = build_chain(request.outer_measurement, request.zones, request.kind)
    problems = chain.problems()
    return SprinklerZoneValidationResponse(
        valid=not problems,
        zones=chain.zones,
        problems=[
            ChainProblem(
                type=problem.__class__.__name__,
                zone_index=problem.zone_index,
                message=str(problem),
            )
            for problem in problems
        ],
    )
