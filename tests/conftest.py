"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- A 3x3 grid of irrigation cells as a GeoJSON FeatureCollection
- A VRI rate document covering all but one cell
- Mock backend client
- FastAPI test client
"""
import base64
import os

# Retry and rate-limit settings are read when the app is imported
os.environ.setdefault("RETRY_MIN_WAIT", "0")
os.environ.setdefault("RETRY_MAX_WAIT", "0")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "10000")
os.environ.setdefault("BACKEND_BASE_URL", "http://backend.test")

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from vrizones.main import app
from vrizones.domain.models import (
    GeoPoint,
    SystemContext,
    ZoneCellRef,
    ZoneDefinition,
)
from vrizones.infrastructure.backend_client import (
    BackendClient,
    CellCollectionResponse,
    PrescriptionMapResponse,
    get_backend_client,
)


GRID_ORIGIN_LAT = 37.0
GRID_ORIGIN_LNG = -120.0
CELL_SIZE_DEG = 0.001


def cell_polygon(row: int, col: int) -> dict:
    """Square cell; neighbouring cells share their edges exactly."""
    west = GRID_ORIGIN_LNG + col * CELL_SIZE_DEG
    east = GRID_ORIGIN_LNG + (col + 1) * CELL_SIZE_DEG
    south = GRID_ORIGIN_LAT + row * CELL_SIZE_DEG
    north = GRID_ORIGIN_LAT + (row + 1) * CELL_SIZE_DEG
    return {
        "type": "Polygon",
        "coordinates": [[
            [west, south], [east, south], [east, north], [west, north], [west, south],
        ]],
    }


def grid_collection() -> dict:
    """
    Cells 1..9, row by row from the south-west corner.

    Bearing sequence = column + 1, distance sequence = row + 1. Even ids
    carry nested correlation keys, odd ids carry flat (float) ones.
    """
    features = []
    for row in range(3):
        for col in range(3):
            feature_id = row * 3 + col + 1
            if feature_id % 2 == 0:
                properties = {
                    "linear_zone_bearing": {"BearingSeqNum": col + 1},
                    "linear_zone_distance": {"DistanceSeqNum": row + 1},
                }
            else:
                properties = {
                    "BearingSeqNum": float(col + 1),
                    "DistanceSeqNum": float(row + 1),
                }
            features.append({
                "type": "Feature",
                "id": feature_id,
                "geometry": cell_polygon(row, col),
                "properties": properties,
            })
    return {"type": "FeatureCollection", "features": features}


SAMPLE_VRI = b"""<?xml version="1.0" encoding="utf-8"?>
<!-- Prescription generated for Pivot 1 -->
<VSSIData xmlns="http://tempuri.org/VSSI.xsd">
  <Header Version="2" Machine="Pivot 1"/>
  <MapZoneRate BearingSeqNum="1" DistanceSeqNum="1" WateringRatePercent="20"/>
  <MapZoneRate BearingSeqNum="2" DistanceSeqNum="1" WateringRatePercent="30"/>
  <MapZoneRate BearingSeqNum="3" DistanceSeqNum="1" WateringRatePercent="40"/>
  <MapZoneRate BearingSeqNum="1" DistanceSeqNum="2" WateringRatePercent="30"/>
  <MapZoneRate BearingSeqNum="2" DistanceSeqNum="2" WateringRatePercent="40"/>
  <MapZoneRate BearingSeqNum="3" DistanceSeqNum="2" WateringRatePercent="50"/>
  <MapZoneRate BearingSeqNum="1" DistanceSeqNum="3" WateringRatePercent="40"/>
  <MapZoneRate BearingSeqNum="2" DistanceSeqNum="3" WateringRatePercent="50"/>
  <WateringColor WateringPercent="100" Color="#FFFF0000"/>
  <WateringColor WateringPercent="25" Color="#800000FF"/>
  <WateringColor WateringPercent="50" Color="#FF00FF00"/>
</VSSIData>
"""


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def cell_collection() -> dict:
    """3x3 grid of cells with ids 1..9."""
    return grid_collection()


@pytest.fixture
def sample_vri() -> bytes:
    """Rate document for every grid cell except 3-3."""
    return SAMPLE_VRI


@pytest.fixture
def encoded_vri(sample_vri) -> str:
    return base64.b64encode(sample_vri).decode("ascii")


@pytest.fixture
def system_context() -> SystemContext:
    return SystemContext(user_id="42", farm_name="Home Farm", irrigation_system_name="Pivot 1")


@pytest.fixture
def stored_zone(system_context) -> ZoneDefinition:
    """Zone 'North' stored on the backend with cells 7 and 8."""
    return ZoneDefinition(
        context=system_context,
        name="North",
        color="#00ff00",
        cells=[
            ZoneCellRef(feature_id=7, bearing_seq="1", distance_seq="3"),
            ZoneCellRef(feature_id=8, bearing_seq="2", distance_seq="3"),
        ],
    )


# ============================================================
# Mock API Client Fixtures
# ============================================================

@pytest.fixture
def mock_backend_client(cell_collection, encoded_vri):
    """Create a mock irrigation backend client."""
    mock_client = AsyncMock(spec=BackendClient)
    mock_client.get_cell_collection.return_value = CellCollectionResponse(
        geojson=cell_collection,
        center=GeoPoint(latitude=37.0015, longitude=-119.9985),
    )
    mock_client.list_management_zones.return_value = []
    mock_client.create_management_zone.return_value = {"message": "created"}
    mock_client.delete_management_zone.return_value = {"message": "deleted"}
    mock_client.create_center_pivot.return_value = {"message": "Center pivot created"}
    mock_client.create_linear_move.return_value = {"message": "GeoJSON generated"}
    mock_client.generate_prescription_map.return_value = PrescriptionMapResponse(
        encoded_vri=encoded_vri,
        speed=12.6,
        max_irrigation_amount=1.23456,
    )
    return mock_client


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)


@pytest.fixture
def backend_override(mock_backend_client):
    """Route every backend call of the app to the mock client."""
    app.dependency_overrides[get_backend_client] = lambda: mock_backend_client
    try:
        yield mock_backend_client
    finally:
        app.dependency_overrides.clear()
