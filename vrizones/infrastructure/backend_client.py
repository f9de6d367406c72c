"""
Infrastructure layer: Irrigation backend client with retry logic.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, Field
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from vrizones.config import settings
from vrizones.domain.models import GeoPoint, SystemContext, ZoneDefinition
from vrizones.infrastructure.api_constants import APIConstants, BackendEndpoints

logger = logging.getLogger(__name__)


# Pydantic models for backend responses
class CellCollectionResponse(BaseModel):
    """Response from the geojson endpoint."""
    geojson: Dict[str, Any] = Field(description="GeoJSON FeatureCollection of cells")
    center: Optional[GeoPoint] = None


class PrescriptionMapResponse(BaseModel):
    """Response from the generate-prescription-map endpoint."""
    encoded_vri: str = Field(description="Base64 encoded rate document")
    speed: Optional[float] = None
    max_irrigation_amount: Optional[float] = None


class BackendAPIError(Exception):
    """Raised when the irrigation backend rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BackendClient:
    """
    Client for the irrigation backend that stores farms, irrigation systems,
    cell collections and management zones.
    Implements retry logic with exponential backoff.
    """

    def __init__(self):
        """Initialize the API client with configuration."""
        self.base_url = settings.backend_base_url
        self.api_key = settings.backend_api_key
        headers = {"accept": APIConstants.CONTENT_TYPE_JSON}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=settings.backend_timeout,
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.TransportError)),
        reraise=True,
    )
    async def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        response = await self.client.request(method, endpoint, **kwargs)
        if response.status_code >= 500:
            # Retry on server errors (5xx)
            response.raise_for_status()
        return response

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Decoded JSON body, or an empty dict for an empty body

        Raises:
            BackendAPIError: If the request fails after retries or is rejected
        """
        try:
            response = await self._send(method, endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            logger.warning(f"Backend {method} {endpoint} failed after retries: {e.response.status_code}")
            raise BackendAPIError(
                f"Backend request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"Backend {method} {endpoint} unreachable: {e}")
            raise BackendAPIError(f"Backend request error: {str(e)}", status_code=503) from e

        if response.is_error:
            # Don't retry on client errors (4xx)
            raise BackendAPIError(
                f"Backend request failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        return response.json()

    # ------------------------------------------------------------------
    # Cells and management zones
    # ------------------------------------------------------------------

    async def get_cell_collection(self, context: SystemContext) -> CellCollectionResponse:
        """
        Fetch the cell collection of an irrigation system.

        Args:
            context: Owner, farm and irrigation system

        Returns:
            CellCollectionResponse with the FeatureCollection and map center

        Raises:
            BackendAPIError: If the request fails or the body has no features
        """
        data = await self._make_request(
            "GET",
            BackendEndpoints.get_cell_collection(
                context.user_id, context.farm_name, context.irrigation_system_name
            ),
        )
        response = CellCollectionResponse(**data)
        if "features" not in response.geojson:
            raise BackendAPIError(
                "Invalid GeoJSON data: features property is missing", status_code=502
            )
        return response

    async def list_management_zones(self, context: SystemContext) -> List[ZoneDefinition]:
        """
        Fetch every management zone stored for an irrigation system.

        Raises:
            BackendAPIError: If the request fails
        """
        data = await self._make_request(
            "GET",
            BackendEndpoints.get_all_management_zones(
                context.user_id, context.farm_name, context.irrigation_system_name
            ),
        )
        zones = (data.get("zones") or []) if isinstance(data, dict) else data
        return [ZoneDefinition.from_backend_payload(zone, context) for zone in zones]

    async def create_management_zone(self, definition: ZoneDefinition) -> Dict[str, Any]:
        """Store a new management zone."""
        return await self._make_request(
            "POST",
            BackendEndpoints.MANAGEMENT_ZONES,
            json=definition.to_backend_payload(),
        )

    async def delete_management_zone(self, context: SystemContext, zone_name: str) -> Dict[str, Any]:
        """Delete a stored management zone."""
        return await self._make_request(
            "DELETE",
            BackendEndpoints.get_management_zone(
                context.user_id, context.farm_name, context.irrigation_system_name, zone_name
            ),
        )

    # ------------------------------------------------------------------
    # Irrigation systems
    # ------------------------------------------------------------------

    async def create_center_pivot(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Submit a center pivot; the backend generates its cell collection."""
        return await self._make_request("POST", BackendEndpoints.CENTER_PIVOTS, json=payload)

    async def create_linear_move(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Submit a linear move; the backend generates its cell collection."""
        return await self._make_request("POST", BackendEndpoints.LINEAR_GEOJSON, json=payload)

    # ------------------------------------------------------------------
    # Prescriptions
    # ------------------------------------------------------------------

    async def generate_prescription_map(
        self,
        context: SystemContext,
        prescription_date: Union[date, str],
    ) -> PrescriptionMapResponse:
        """
        Ask the backend for the rate document of a system on a date.

        Raises:
            BackendAPIError: If the request fails or no document is returned
        """
        data = await self._make_request(
            "GET",
            BackendEndpoints.PRESCRIPTION_MAP,
            params={
                "user_id": context.user_id,
                "farmname": context.farm_name,
                "irrigation_system_name": context.irrigation_system_name,
                "date": str(prescription_date),
            },
        )
        if not data.get("encoded_vri"):
            raise BackendAPIError("No encoded VRI data received", status_code=502)
        return PrescriptionMapResponse(**data)


# Singleton instance
_backend_client: Optional[BackendClient] = None


def get_backend_client() -> BackendClient:
    """
    Get or create the singleton backend client instance.

    Returns:
        BackendClient instance
    """
    global _backend_client
    if _backend_client is None:
        _backend_client = BackendClient()
    return _backend_client
