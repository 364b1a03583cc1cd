from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ADDRESS_CORRECTOR_", env_file=".env", extra="ignore")

    ddb_path: Path = Path("data/reference.duckdb")
    log_level: str = "INFO"
    log_file: Path | None = None

    # Correction behaviour
    similarity_threshold: float = 0.7
    field_recovery_mode: Literal["contains", "exact"] = "contains"
    clamp_confidence: bool = False
    correct_city: bool = False


settings = Settings()
