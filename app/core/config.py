from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_openapi_docs: bool = Field(default=True, alias="ENABLE_OPENAPI_DOCS")

    internal_api_token: str = Field(
        default="dev_internal_token_change_me",
        alias="INTERNAL_API_TOKEN",
    )
    internal_api_allowlist: str = Field(default="", alias="INTERNAL_API_ALLOWLIST")
    internal_api_trusted_proxies: str = Field(default="", alias="INTERNAL_API_TRUSTED_PROXIES")

    database_url: str = Field(alias="DATABASE_URL")

    energy_regen_minutes_per_point: int = Field(
        default=10,
        ge=1,
        alias="ENERGY_REGEN_MINUTES_PER_POINT",
    )
    geofence_radius_m: float = Field(default=100.0, gt=0, alias="GEOFENCE_RADIUS_M")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
