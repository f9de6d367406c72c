"""
Dependency injection for FastAPI.
"""
from typing import Annotated
from fastapi import Depends

from vrizones.config import settings
from vrizones.infrastructure.backend_client import (
    BackendClient,
    get_backend_client,
)
from vrizones.services.application.irrigation_system_service import IrrigationSystemService
from vrizones.services.application.prescription_service import PrescriptionService
from vrizones.services.application.zone_service import ZoneService
from vrizones.services.domain.prescription_merger import PrescriptionMerger


def get_prescription_merger() -> PrescriptionMerger:
    """
    Dependency factory for PrescriptionMerger.

    Returns:
        PrescriptionMerger using the configured no-data color
    """
    return PrescriptionMerger(no_data_color=settings.no_data_color)


def get_zone_service(
    backend_client: Annotated[BackendClient, Depends(get_backend_client)],
) -> ZoneService:
    return ZoneService(backend_client=backend_client)


def get_prescription_service(
    backend_client: Annotated[BackendClient, Depends(get_backend_client)],
    merger: Annotated[PrescriptionMerger, Depends(get_prescription_merger)],
) -> PrescriptionService:
    """
    Dependency factory for PrescriptionService.

    Args:
        backend_client: Irrigation backend client (injected)
        merger: Prescription merger (injected)

    Returns:
        PrescriptionService instance
    """
    return PrescriptionService(backend_client=backend_client, merger=merger)


def get_irrigation_system_service(
    backend_client: Annotated[BackendClient, Depends(get_backend_client)],
) -> IrrigationSystemService:
    return IrrigationSystemService(backend_client=backend_client)


# Type aliases for cleaner route signatures
ZoneServiceDep = Annotated[ZoneService, Depends(get_zone_service)]
PrescriptionServiceDep = Annotated[PrescriptionService, Depends(get_prescription_service)]
IrrigationSystemServiceDep = Annotated[
    IrrigationSystemService, Depends(get_irrigation_system_service)
]
