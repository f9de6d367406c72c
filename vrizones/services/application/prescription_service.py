"""
Application service: Orchestration layer for prescription maps.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Union

from vrizones.config import settings
from vrizones.domain.errors import PrescriptionError
from vrizones.domain.models import BoundingBox, GeoPoint, LegendEntry, SystemContext
from vrizones.infrastructure.backend_client import BackendClient
from vrizones.services.domain.prescription_merger import (
    RATE_PROPERTY,
    PrescriptionMerger,
    RateUpdateResult,
    feature_rate_key,
)
from vrizones.services.domain.rate_document import RateDocument

logger = logging.getLogger(__name__)


@dataclass
class PrescriptionMap:
    """Cells carrying their prescribed rates, with the legend to color them."""
    geojson: dict
    legend: List[LegendEntry]
    document: RateDocument
    filename: str
    center: Optional[GeoPoint] = None
    speed: Optional[int] = None
    max_irrigation_amount: Optional[float] = None
    colors: dict = field(default_factory=dict)


def export_filename(context: SystemContext, prescription_date: Union[date, str]) -> str:
    """File name of an exported rate document: {farm}_{system}_{date}.vri"""
    return f"{context.farm_name}_{context.irrigation_system_name}_{prescription_date}.vri"


class PrescriptionService:
    """
    Application service for prescription maps.

    Fetches the rate document the backend generates for a date, overlays it
    on the system's cells and applies manual rate edits.
    """

    def __init__(self, backend_client: BackendClient, merger: PrescriptionMerger):
        """
        Initialize the service with dependencies.

        Args:
            backend_client: Irrigation backend client
            merger: Prescription merger
        """
        self.backend_client = backend_client
        self.merger = merger

    def _parse(self, encoded_document: str) -> RateDocument:
        return RateDocument.from_base64(encoded_document, settings.prescription_namespaces)

    def cell_colors(self, geojson: dict, legend: Sequence[LegendEntry]) -> dict:
        """Fill color of every cell keyed by composite key."""
        colors = {}
        for feature in geojson.get("features") or []:
            properties = feature.get("properties") or {}
            key = feature_rate_key(feature)
            if key is not None:
                colors[key] = self.merger.color_for_rate(properties.get(RATE_PROPERTY), legend)
        return colors

    async def generate(
        self,
        context: SystemContext,
        prescription_date: Union[date, str],
    ) -> PrescriptionMap:
        """
        Generate the prescription map of a system for a date.

        Raises:
            BackendAPIError: If the backend cannot produce the document
            InvalidRateDocument: If the returned document cannot be read
        """
        collection = await self.backend_client.get_cell_collection(context)
        response = await self.backend_client.generate_prescription_map(context, prescription_date)

        document = self._parse(response.encoded_vri)
        geojson = self.merger.merge_rates(collection.geojson, document)
        legend = self.merger.build_legend(document)

        logger.info(
            f"Generated prescription for {context.farm_name}/{context.irrigation_system_name} "
            f"on {prescription_date}: {len(document.rates)} rates, {len(legend)} legend entries"
        )
        return PrescriptionMap(
            geojson=geojson,
            legend=legend,
            document=document,
            filename=export_filename(context, prescription_date),
            center=collection.center,
            speed=None if response.speed is None else round(response.speed),
            max_irrigation_amount=(
                None if response.max_irrigation_amount is None
                else round(response.max_irrigation_amount, 2)
            ),
            colors=self.cell_colors(geojson, legend),
        )

    def update_rates(
        self,
        geojson: dict,
        encoded_document: str,
        rate: float,
        keys: Sequence[str] = (),
        region: Optional[Union[BoundingBox, tuple]] = None,
    ) -> RateUpdateResult:
        """
        Apply one rate to explicit composite keys and/or every cell in a region.

        Raises:
            PrescriptionError: If no cell is targeted
            InvalidRate: If the rate is not a finite number >= 0
            RateKeyNotFound: If some keys are not in the document
        """
        document = self._parse(encoded_document)
        targets = list(keys)
        if region is not None:
            targets.extend(self.merger.keys_in_region(geojson, region))
        if not targets:
            raise PrescriptionError("No cells selected for the rate update")

        result = self.merger.update_rate(geojson, document, targets, rate)
        logger.info(f"Updated watering rate to {rate} for {len(result.updated_keys)} cells")
        return result
