"""Configuration models."""

from typing import Optional
from pydantic import BaseModel, Field, validator


class StoreConfig(BaseModel):
    """Container store configuration."""
    root: str = Field(default="/var/lib/scaffold")
    skopeo_path: str = Field(default="skopeo")
    pull_timeout: int = Field(default=600, ge=1)


class ScaffoldConfig(BaseModel):
    """Main configuration model."""
    log_level: str = Field(default="WARNING")
    store: StoreConfig = Field(default_factory=StoreConfig)
    registry: str = Field(default="docker.io")
    signature_policy_path: Optional[str] = None

    @validator("log_level")
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    class Config:
        """Pydantic config."""
        extra = "ignore"
