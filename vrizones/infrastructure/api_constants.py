"""
API endpoint constants and configuration.

This module contains all irrigation backend endpoint paths and related constants.
Centralizing these values makes it easy to swap out endpoints or update API versions.
"""
from urllib.parse import quote


def _segment(value) -> str:
    """Escape one path segment (farm and zone names may contain spaces or slashes)."""
    return quote(str(value), safe="")


# Irrigation backend endpoints
class BackendEndpoints:
    """Irrigation backend endpoint paths."""

    # Cell collections
    CELL_COLLECTION = "/geojson/{user_id}/{farm_name}/{system_name}"

    # Management zones
    MANAGEMENT_ZONES = "/management-zones"
    ALL_MANAGEMENT_ZONES = "/all/management-zones/{user_id}/{farm_name}/{system_name}"
    MANAGEMENT_ZONE = "/management-zones/{user_id}/{farm_name}/{system_name}/{zone_name}"

    # Irrigation systems
    CENTER_PIVOTS = "/pivot/centerpivots"
    LINEAR_GEOJSON = "/linear/generate-geojson"

    # Prescriptions
    PRESCRIPTION_MAP = "/generate-prescription-map"

    @classmethod
    def get_cell_collection(cls, user_id, farm_name: str, system_name: str) -> str:
        """
        Get the cell collection endpoint of one irrigation system.

        Args:
            user_id: Owner of the farm
            farm_name: Farm name
            system_name: Irrigation system name

        Returns:
            Formatted endpoint path
        """
        return cls.CELL_COLLECTION.format(
            user_id=_segment(user_id),
            farm_name=_segment(farm_name),
            system_name=_segment(system_name),
        )

    @classmethod
    def get_all_management_zones(cls, user_id, farm_name: str, system_name: str) -> str:
        return cls.ALL_MANAGEMENT_ZONES.format(
            user_id=_segment(user_id),
            farm_name=_segment(farm_name),
            system_name=_segment(system_name),
        )

    @classmethod
    def get_management_zone(cls, user_id, farm_name: str, system_name: str, zone_name: str) -> str:
        """
        Get the endpoint of one stored management zone.

        Returns:
            Formatted endpoint path
        """
        return cls.MANAGEMENT_ZONE.format(
            user_id=_segment(user_id),
            farm_name=_segment(farm_name),
            system_name=_segment(system_name),
            zone_name=_segment(zone_name),
        )


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"

    # Linear move cell grid spacing sent with every generate-geojson request
    LINEAR_GRID_SPACING = 2
