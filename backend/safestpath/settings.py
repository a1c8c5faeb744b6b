from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_out_dir() -> str:
    # Keep runtime artifacts (logs) in backend/out by default.
    return str(Path(__file__).resolve().parents[1] / "out")


class Settings(BaseSettings):
    """Validated planner settings, read from the environment and optional .env files."""

    model_config = SettingsConfigDict(
        # Support both "repo root/.env" and "backend/.env" (local dev)
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    out_dir: str = Field(default_factory=_default_out_dir, alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Number of distinct routes requested per query (the planner never returns more than three).
    route_count: int = Field(default=3, ge=1, le=3, alias="ROUTE_COUNT")
    # Optional cap on how far a query point may be snapped to its nearest intersection.
    snap_max_distance_km: float | None = Field(default=None, gt=0.0, alias="SNAP_MAX_DISTANCE_KM")

    @model_validator(mode="after")
    def _normalise_log_level(self) -> "Settings":
        self.log_level = str(self.log_level or "INFO").strip().upper() or "INFO"
        return self


settings = Settings()
