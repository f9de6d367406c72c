"""
Application service: Orchestration layer for management zone operations.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from vrizones.config import settings
from vrizones.domain.errors import CellAlreadyZoned, RegistryError
from vrizones.domain.models import (
    BoundingBox,
    FeatureId,
    GeoPoint,
    ManagementZone,
    SystemContext,
    TreatmentMetadata,
)
from vrizones.infrastructure.backend_client import BackendClient
from vrizones.services.domain.cell_zone_registry import CellZoneRegistry

logger = logging.getLogger(__name__)


@dataclass
class ZoneMap:
    """Cells of a system with their zones, as loaded from the backend."""
    registry: CellZoneRegistry
    geojson: dict
    center: Optional[GeoPoint] = None
    skipped_zones: List[str] = field(default_factory=list)


class ZoneService:
    """
    Application service for management zones.

    Each call rebuilds the registry from the backend's cell collection and
    stored zones, applies one operation and writes the result back.
    """

    def __init__(self, backend_client: BackendClient):
        """
        Initialize the service with dependencies.

        Args:
            backend_client: Irrigation backend client
        """
        self.backend_client = backend_client

    async def load_zone_map(self, context: SystemContext) -> ZoneMap:
        """
        Fetch cells and stored zones of a system and register them.

        Stored zones that reference unknown cells or overlap an earlier
        zone are left out and reported in `skipped_zones`.

        Raises:
            BackendAPIError: If the backend cannot be read
            UnstableCellId: If stable ids are required and a cell has none
        """
        collection = await self.backend_client.get_cell_collection(context)
        definitions = await self.backend_client.list_management_zones(context)

        registry = CellZoneRegistry.from_feature_collection(
            collection.geojson,
            require_stable_ids=settings.require_stable_cell_ids,
        )
        skipped = []
        for definition in definitions:
            try:
                registry.restore_zone(definition)
            except RegistryError as e:
                logger.warning(f"Skipping stored zone '{definition.name}': {e}")
                skipped.append(definition.name)

        logger.info(
            f"Loaded {len(registry.cells)} cells and {len(registry.zones)} zones "
            f"for {context.farm_name}/{context.irrigation_system_name}"
        )
        return ZoneMap(
            registry=registry,
            geojson=collection.geojson,
            center=collection.center,
            skipped_zones=skipped,
        )

    async def create_zone(
        self,
        context: SystemContext,
        name: str,
        color: str,
        cell_ids: Sequence[FeatureId] = (),
        region: Optional[Union[BoundingBox, tuple]] = None,
        treatment: Optional[TreatmentMetadata] = None,
    ) -> ZoneMap:
        """
        Create a zone from explicit cells and/or a selection rectangle.

        Every zoned cell among the requested ones is reported at once.

        Returns:
            The zone map with the new zone registered

        Raises:
            CellAlreadyZoned: If any requested cell already belongs to a zone
            DuplicateZoneName, InvalidZoneName, EmptySelection, UnknownCell
            BackendAPIError: If the zone cannot be stored
        """
        zone_map = await self.load_zone_map(context)
        registry = zone_map.registry

        conflicts: Dict[FeatureId, str] = {}
        for cell_id in cell_ids:
            try:
                registry.select_cell(cell_id)
            except CellAlreadyZoned as e:
                conflicts.update(e.conflicts)
        if region is not None:
            try:
                registry.select_region(region)
            except CellAlreadyZoned as e:
                conflicts.update(e.conflicts)
        if conflicts:
            raise CellAlreadyZoned(
                conflicts, selected=[cell.feature_id for cell in registry.selected_cells]
            )

        zone = registry.create_zone(name, color, treatment)
        await self.backend_client.create_management_zone(
            registry.zone_definition(zone.name, context)
        )
        logger.info(f"Created management zone '{zone.name}' with {len(zone.cells)} cells")
        return zone_map

    async def delete_zone(self, context: SystemContext, name: str) -> ManagementZone:
        """
        Delete a stored zone; its cells become unassigned.

        Raises:
            ZoneNotFound: If the system has no zone with this name
            BackendAPIError: If the backend rejects the delete
        """
        zone_map = await self.load_zone_map(context)
        zone = zone_map.registry.delete_zone(name)
        await self.backend_client.delete_management_zone(context, zone.name)
        logger.info(f"Deleted management zone '{zone.name}'")
        return zone
