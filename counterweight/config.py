"""
Counterweight Configuration — pydantic-settings based.

All settings are read from COUNTERWEIGHT_* environment variables or a .env file.
Nothing is required: every threshold defaults to the value the weighting
methodology was calibrated with.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application-wide settings sourced from environment variables."""

    # ── AHP ──
    consistency_threshold: float = Field(
        default=0.10,
        description="Maximum consistency ratio (CR) accepted as consistent",
    )
    power_iteration_tolerance: float = Field(
        default=1e-10,
        description="L1 change between iterations below which power iteration stops",
    )
    power_iteration_max_iter: int = Field(
        default=1000, description="Hard cap on power iteration steps"
    )

    # ── Scenario validation ──
    alignment_threshold: float = Field(
        default=0.75,
        description="Minimum share of aligned scenarios for a 'good alignment' verdict",
    )

    # ── Synthesis ──
    rescale_tolerance: float = Field(
        default=0.1,
        description="Advisory weights whose sum deviates from 100 by more than this are rescaled",
    )
    sum_tolerance: float = Field(
        default=0.01, description="Allowed deviation of the final sum from 100.00"
    )
    weight_floor: float = Field(
        default=1.0, description="Minimum weight any consequence type may receive"
    )
    significant_change_threshold: float = Field(
        default=3.0,
        description="Absolute change vs AHP (percentage points) flagged as significant",
    )

    # ── Sensitivity ──
    sensitivity_variation_percent: float = Field(
        default=20.0, description="Default ± variation applied per weight"
    )

    # ── Advisory subsystem ──
    advisory_url: str | None = Field(
        default=None, description="Endpoint of the advisory weight service"
    )
    advisory_api_key: str | None = Field(
        default=None, description="Bearer token for the advisory weight service"
    )
    advisory_timeout: float = Field(
        default=60.0, description="Per-attempt advisory timeout in seconds"
    )
    advisory_max_retries: int = Field(
        default=3, description="Max advisory attempts before degrading to AHP-only"
    )
    advisory_backoff_base: float = Field(
        default=1.0, description="Base delay in seconds for exponential backoff"
    )

    # ── Logging ──
    log_level: str = Field(default="INFO", description="Root log level")

    model_config = {
        "env_prefix": "COUNTERWEIGHT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Singleton instance, imported by other modules
settings = Settings()
