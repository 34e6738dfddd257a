"""sketchgeom configuration using pydantic-settings.

All configuration is strongly typed and supports environment variables
(prefixed with ``SKETCHGEOM_``) and .env files.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Kernel settings loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_prefix="SKETCHGEOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["console", "json"] = "console"

    # Intersection engine
    CURVE_SAMPLES: int = Field(
        default=32,
        ge=2,
        description="Samples per curve or arc segment when flattening paths",
    )
    DEDUPE_PRECISION: int = Field(
        default=10,
        ge=0,
        description="Decimal digits used to key intersection points for dedup",
    )


# Singleton instance for import convenience
settings = Settings()
