"""
API router for management zone endpoints.
"""
from typing import Annotated

from fastapi import APIRouter, Path, status

from vrizones.api.dependencies import ZoneServiceDep
from vrizones.api.v1.models.requests import CreateZoneRequest
from vrizones.api.v1.models.responses import (
    ZoneDeletedResponse,
    ZoneMapResponse,
    ZoneSummary,
)
from vrizones.domain.models import SystemContext
from vrizones.services.domain.cell_zone_registry import CellZoneRegistry


router = APIRouter(
    prefix="/systems/{user_id}/{farm_name}/{system_name}/zones",
    tags=["management-zones"],
)


def _context(user_id: str, farm_name: str, system_name: str) -> SystemContext:
    return SystemContext(
        user_id=user_id, farm_name=farm_name, irrigation_system_name=system_name
    )


def _summary(registry: CellZoneRegistry, name: str) -> ZoneSummary:
    zone = registry.zone(name)
    return ZoneSummary(
        name=zone.name,
        color=zone.color,
        cell_ids=zone.feature_ids,
        centroid=registry.zone_centroid(zone.name),
        treatment=zone.treatment,
    )


@router.get(
    "",
    response_model=ZoneMapResponse,
    summary="Get the zone map of an irrigation system",
    description="""
    Return the cell collection of an irrigation system together with its
    management zones (sorted by name, with label anchors) and the style of
    every cell. Cells on the edge of a zone are drawn with a heavy black
    stroke; unzoned cells use the default style.
    """,
    responses={
        429: {"description": "Rate limit exceeded"},
        502: {"description": "Backend returned an invalid cell collection"},
    }
)
async def get_zone_map(
    user_id: Annotated[str, Path(description="Owner of the farm")],
    farm_name: Annotated[str, Path(description="Farm name")],
    system_name: Annotated[str, Path(description="Irrigation system name")],
    zone_service: ZoneServiceDep,
) -> ZoneMapResponse:
    zone_map = await zone_service.load_zone_map(_context(user_id, farm_name, system_name))
    registry = zone_map.registry
    return ZoneMapResponse(
        geojson=zone_map.geojson,
        center=zone_map.center,
        zones=[_summary(registry, zone.name) for zone in registry.zones],
        styles=registry.styles(),
        skipped_zones=zone_map.skipped_zones,
    )


@router.post(
    "",
    response_model=ZoneSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Create a management zone",
    description="""
    Group cells into a named management zone. Cells are given by id and/or
    by a selection rectangle (every cell whose bounding box touches it).

    A cell can belong to one zone only; names are unique ignoring case and
    surrounding spaces.
    """,
    responses={
        400: {"description": "Blank name or no cell selected"},
        404: {"description": "Unknown cell id"},
        409: {"description": "Name already used or cells already zoned"},
    }
)
async def create_zone(
    user_id: Annotated[str, Path(description="Owner of the farm")],
    farm_name: Annotated[str, Path(description="Farm name")],
    system_name: Annotated[str, Path(description="Irrigation system name")],
    request: CreateZoneRequest,
    zone_service: ZoneServiceDep,
) -> ZoneSummary:
    zone_map = await zone_service.create_zone(
        _context(user_id, farm_name, system_name),
        name=request.name,
        color=request.color,
        cell_ids=request.cell_ids,
        region=request.region,
        treatment=request.treatment,
    )
    return _summary(zone_map.registry, request.name)


@router.delete(
    "/{zone_name}",
    response_model=ZoneDeletedResponse,
    summary="Delete a management zone",
    responses={
        404: {"description": "Zone not found"},
    }
)
async def delete_zone(
    user_id: Annotated[str, Path(description="Owner of the farm")],
    farm_name: Annotated[str, Path(description="Farm name")],
    system_name: Annotated[str, Path(description="Irrigation system name")],
    zone_name: Annotated[str, Path(description="Management zone name")],
    zone_service: ZoneServiceDep,
) -> ZoneDeletedResponse:
    zone = await zone_service.delete_zone(_context(user_id, farm_name, system_name), zone_name)
    return ZoneDeletedResponse(name=zone.name, released_cell_ids=zone.feature_ids)
