from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogSettings(BaseSettings):
    """BIM Portal connection settings, read from BIM_PORTAL_* variables or .env."""

    model_config = SettingsConfigDict(env_prefix="BIM_PORTAL_", env_file=".env", extra="ignore")

    base: str = "https://www.bimdeutschland.de"
    token: Optional[str] = None
    user_agent: str = "ifc-normalizer/0.1"

    # Per-call timeout in seconds
    timeout: float = Field(default=10.0, gt=0)

    # Retries on transient failures, with exponential backoff
    retries: int = Field(default=2, ge=0)
    backoff: float = Field(default=0.3, ge=0)
    max_backoff: float = Field(default=10.0, ge=0)
