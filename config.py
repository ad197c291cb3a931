from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FOODPOOL_", env_file=".env")

    env: Env = Env.local
    log_level: str = "INFO"

    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "foodpool"

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    upload_dir: Path = Path("uploads/food-images")

    nominatim_url: str = "https://nominatim.openstreetmap.org"
    geocode_country: str = "in"
    geocode_user_agent: str = "foodpool-api"
    geocode_timeout: float = 10.0

    # Used whenever a page needs a coordinate and none is stored (Kanpur).
    fallback_latitude: float = 26.4677536423731
    fallback_longitude: float = 80.346298037978
    feed_radius_meters: int = 50000
    default_distance_km: int = 5


@lru_cache
def get_settings() -> Settings:
    return Settings()
