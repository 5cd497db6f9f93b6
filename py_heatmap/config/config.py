"""Configuration management."""

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def load_env_file(env_file: Path) -> int:
    """
    Copy values from a .env file into the environment.

    Variables already set in the environment win over the file.

    Returns:
        Number of variables taken from the file
    """
    if not env_file.exists():
        return 0
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v
    return len(missing_keys)


load_env_file(BASE_DIR / ".env")


class Settings(BaseSettings):
    """Application settings pulled from HEATMAP_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HEATMAP_",
        extra="ignore",
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    max_sessions: int = Field(default=16, ge=1, description="Max live sessions in the API")

    # Grid
    default_resolution: int = Field(
        default=7, ge=1, le=12, description="Default grid side is 2^resolution + 1"
    )
    max_grid_size: int = Field(default=4097, ge=2, description="Largest allowed grid side")
    strict_dimensions: bool = Field(
        default=True, description="Reject grid sides that are not 2^n + 1"
    )

    # Brush presets
    brush_radius: float = Field(default=15.0, gt=0, description="Preset brush radius in cells")
    brush_pressure: float = Field(default=0.03, description="Preset brush center effect")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    @property
    def default_size(self) -> int:
        """Grid side derived from default_resolution."""
        return 2**self.default_resolution + 1


settings = Settings()
