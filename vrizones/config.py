"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Irrigation backend configuration
    backend_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the irrigation backend that stores systems, cells and zones"
    )
    backend_api_key: str = Field(
        default="",
        description="Bearer token sent to the irrigation backend"
    )
    backend_timeout: float = Field(
        default=10.0,
        description="Request timeout in seconds for backend calls"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for backend calls"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=4,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Geometry
    sector_step_degrees: float = Field(
        default=1.0,
        gt=0,
        le=1.0,
        description="Angular step used to trace sector arcs (1 degree or finer)"
    )
    degenerate_sector_offset: float = Field(
        default=0.1,
        gt=0,
        description="Angle offset in degrees used to draw a zero-width sector as a thin wedge"
    )

    # Cells and zones
    require_stable_cell_ids: bool = Field(
        default=False,
        description="Reject cell collections whose features have no explicit id"
    )

    # Prescriptions
    prescription_namespaces: list[str] = Field(
        default=[
            "http://tempuri.org/VSSILinearData.xsd",
            "http://tempuri.org/VSSI.xsd",
        ],
        description="Rate document namespaces probed before falling back to discovery"
    )
    no_data_color: str = Field(
        default="#3388ff",
        description="Fill color for cells without a prescribed rate"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="VRI Zones",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
