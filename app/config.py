"""Application settings loaded from .env via pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from core.orders import known_orders


class ChunkConfig(BaseModel):
    songs: int = Field(default=100, gt=0)  # maximum window size


class FeederConfig(BaseModel):
    chunk: ChunkConfig = Field(default_factory=ChunkConfig)


def _default_feeders() -> Dict[str, FeederConfig]:
    return {"defaults": FeederConfig()}


class Settings(BaseSettings):
    """Central configuration — values come from environment / .env file."""

    # Catalog (archive.org)
    catalog_base_url: str = "https://archive.org"
    catalog_connect_timeout: float = 10.0  # seconds
    catalog_read_timeout: float = 30.0

    # Feeder
    default_order: str = "natural"
    feeders: Dict[str, FeederConfig] = Field(default_factory=_default_feeders)
    empty_chunk_retries: int = Field(default=3, ge=0)

    # Database
    db_path: str = "./data/album_feeder.db"

    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("default_order")
    @classmethod
    def _known_default_order(cls, value: str) -> str:
        if value not in known_orders():
            raise ValueError(f"default_order must be one of {known_orders()}, got {value!r}")
        return value

    @field_validator("feeders")
    @classmethod
    def _known_feeder_keys(cls, value: Dict[str, FeederConfig]) -> Dict[str, FeederConfig]:
        if "defaults" not in value:
            raise ValueError("feeders must define a 'defaults' entry")
        unknown = set(value) - set(known_orders()) - {"defaults"}
        if unknown:
            raise ValueError(f"feeders has unknown order(s): {sorted(unknown)}")
        return value

    def feeder_config(self, order: Optional[str]) -> FeederConfig:
        """Config of the feeder for *order*, falling back to ``defaults``."""
        return self.feeders.get(order or self.default_order) or self.feeders["defaults"]

    @property
    def db_abs_path(self) -> Path:
        """Return the database path as an absolute Path, creating parents if needed."""
        p = Path(self.db_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p.resolve()


@lru_cache
def get_settings() -> Settings:
    """Cached singleton so .env is read only once."""
    return Settings()
