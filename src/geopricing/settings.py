from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from geopricing.cache.keys import TTLPolicy
from geopricing.geo.models import RouteProfile


def _validate_http_url(v: str, name: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError(f"{name} base URL must start with http:// or https://")
    return v.rstrip("/")


class ServiceSettings(BaseSettings):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    model_config = SettingsConfigDict(env_prefix="GEO_")


class OSRMSettings(BaseSettings):
    base_url: str = "http://localhost:5000"
    timeout_seconds: float = Field(default=5.0, gt=0, le=30.0)

    model_config = SettingsConfigDict(env_prefix="OSRM_")

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_http_url(v, "OSRM")


class PeliasSettings(BaseSettings):
    base_url: str = "http://localhost:4000"
    api_key: str = ""
    timeout_seconds: float = Field(default=5.0, gt=0, le=30.0)

    model_config = SettingsConfigDict(env_prefix="PELIAS_")

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_http_url(v, "Pelias")


class RedisSettings(BaseSettings):
    host: str = "localhost"
    port: int = 6379
    password: str = ""
    db: int = Field(default=0, ge=0)
    ssl: bool = False

    model_config = SettingsConfigDict(env_prefix="REDIS_")


class CacheSettings(BaseSettings):
    backend: Literal["redis", "memory"] = Field(
        default="redis",
        description="Cache store: redis for shared deployments, memory for local runs",
    )
    routing_ttl_seconds: int = Field(default=1800, gt=0)
    geocoding_ttl_seconds: int = Field(default=86400, gt=0)
    key_precision: int = Field(
        default=4,
        ge=3,
        le=6,
        description="Decimal places coordinates are rounded to in cache keys",
    )

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    @model_validator(mode="after")
    def validate_ttl_ordering(self) -> "CacheSettings":
        if self.geocoding_ttl_seconds < self.routing_ttl_seconds:
            raise ValueError(
                "CACHE_GEOCODING_TTL_SECONDS must be >= CACHE_ROUTING_TTL_SECONDS "
                f"(got {self.geocoding_ttl_seconds} < {self.routing_ttl_seconds})"
            )
        return self

    def ttl_policy(self) -> TTLPolicy:
        return TTLPolicy(
            routing_seconds=self.routing_ttl_seconds,
            geocoding_seconds=self.geocoding_ttl_seconds,
        )


class PricingSettings(BaseSettings):
    route_profile: RouteProfile = RouteProfile.TRUCK
    currency: str = Field(default="TND", min_length=3, max_length=3)

    model_config = SettingsConfigDict(env_prefix="PRICING_")


class CORSSettings(BaseSettings):
    origins: str = "http://localhost:5173,http://localhost:3000"

    model_config = SettingsConfigDict(env_prefix="CORS_")


class Settings(BaseSettings):
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    osrm: OSRMSettings = Field(default_factory=OSRMSettings)
    pelias: PeliasSettings = Field(default_factory=PeliasSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
