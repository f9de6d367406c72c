"""
Application service: Orchestration layer for drawing and submitting
irrigation systems (center pivots and linear moves).
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from vrizones.config import settings
from vrizones.domain.errors import InvalidGeometry
from vrizones.domain.models import (
    GeoPoint,
    RectangleShape,
    Sector,
    SystemContext,
)
from vrizones.infrastructure.api_constants import APIConstants
from vrizones.infrastructure.backend_client import BackendClient
from vrizones.services.domain.sprinkler_zone_chain import SprinklerZoneChain
from vrizones.utils.geo_math import (
    rectangle_corners,
    rectangle_from_center,
    sector_polygon,
)

logger = logging.getLogger(__name__)


@dataclass
class Submission:
    """Payload sent to the backend and what the backend answered."""
    payload: Dict[str, Any]
    backend_response: Any


class IrrigationSystemService:
    """
    Application service for irrigation system operations.

    Validates the drawn shape and its sprinkler zones, then hands the
    system to the backend, which generates the cell collection.
    """

    def __init__(self, backend_client: BackendClient):
        """
        Initialize the service with dependencies.

        Args:
            backend_client: Irrigation backend client
        """
        self.backend_client = backend_client

    # ------------------------------------------------------------------
    # Center pivots
    # ------------------------------------------------------------------

    def sector_outline(self, center: GeoPoint, radius_m: float, sector: Sector) -> List[GeoPoint]:
        """Outline of the watered sector with the configured arc step."""
        return sector_polygon(
            center,
            sector.start_angle,
            sector.end_angle,
            radius_m,
            step_deg=settings.sector_step_degrees,
            degenerate_offset=settings.degenerate_sector_offset,
        )

    def build_center_pivot_payload(
        self,
        context: SystemContext,
        center: GeoPoint,
        radius_m: float,
        sector: Sector,
        chain: SprinklerZoneChain,
        maximum_speed: float,
        water_application: float,
        space_between_nozzles: float,
    ) -> Dict[str, Any]:
        """
        Validate a center pivot and render the backend payload.

        Raises:
            InvalidGeometry: If the center or radius is invalid
            ZoneChainError: If the sprinkler zones are inconsistent
        """
        # Raises on a bad center/radius before the chain is looked at
        self.sector_outline(center, radius_m, sector)
        chain.set_outer_measurement(radius_m)

        return {
            "user_id": context.user_id,
            "farm_name": context.farm_name,
            "pivot_name": context.irrigation_system_name,
            "center_lat": center.latitude,
            "center_lng": center.longitude,
            "radius": radius_m,
            "start_angle": sector.start_angle,
            "end_angle": sector.end_angle,
            "maximum_speed": maximum_speed,
            "water_application": water_application,
            "sprinkler_zones": chain.to_payload(),
            "space_between_nozzles": space_between_nozzles,
        }

    async def submit_center_pivot(self, context: SystemContext, **pivot) -> Submission:
        """
        Submit a center pivot to the backend.

        Args:
            context: Owner, farm and pivot name
            **pivot: Arguments of build_center_pivot_payload

        Returns:
            Submission with the payload and the backend response body
        """
        payload = self.build_center_pivot_payload(context, **pivot)
        logger.info(
            f"Submitting center pivot '{context.irrigation_system_name}' "
            f"for farm '{context.farm_name}' with {len(payload['sprinkler_zones'])} zones"
        )
        return Submission(payload, await self.backend_client.create_center_pivot(payload))

    # ------------------------------------------------------------------
    # Linear moves
    # ------------------------------------------------------------------

    def build_linear_payload(
        self,
        context: SystemContext,
        shape: RectangleShape,
        start_corner: str,
        chain: SprinklerZoneChain,
    ) -> Dict[str, Any]:
        """
        Validate a linear move and render the backend payload.

        Args:
            context: Owner, farm and system name
            shape: Footprint of the linear move
            start_corner: Corner the machine starts from ("South West", ...)
            chain: Sprinkler bands across the width

        Raises:
            InvalidGeometry: If the rectangle or start corner is invalid
            ZoneChainError: If the sprinkler zones are inconsistent
        """
        bbox = rectangle_from_center(
            shape.center, shape.length_m, shape.width_m, shape.length_is_horizontal
        )
        corners = rectangle_corners(bbox)
        if start_corner not in corners:
            raise InvalidGeometry(
                f"Unknown start corner '{start_corner}'. Valid corners: {', '.join(corners)}"
            )
        start = corners[start_corner]
        chain.set_outer_measurement(shape.outer_measurement)

        return {
            "center": {
                "latitude": shape.center.latitude,
                "longitude": shape.center.longitude,
            },
            "width": shape.width_m,
            "length": shape.length_m,
            "gridspacing": APIConstants.LINEAR_GRID_SPACING,
            "farmname": context.farm_name,
            "irrigation_system_name": context.irrigation_system_name,
            "sprinklerzones": chain.to_payload(),
            "bbox": [
                [bbox.southwest.latitude, bbox.southwest.longitude],
                [bbox.northeast.latitude, bbox.northeast.longitude],
            ],
            "startpoint": [start.latitude, start.longitude],
            "user_id": context.user_id,
            "isLengthHorizontal": shape.length_is_horizontal,
        }

    async def submit_linear_move(
        self,
        context: SystemContext,
        shape: RectangleShape,
        start_corner: str,
        chain: SprinklerZoneChain,
    ) -> Submission:
        """Submit a linear move to the backend."""
        payload = self.build_linear_payload(context, shape, start_corner, chain)
        logger.info(
            f"Submitting linear move '{context.irrigation_system_name}' "
            f"for farm '{context.farm_name}' starting at {start_corner}"
        )
        return Submission(payload, await self.backend_client.create_linear_move(payload))
