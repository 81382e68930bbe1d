"""Application configuration utilities."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings derived from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./travel_claims.db", alias="DATABASE_URL"
    )
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    policy_cache_backend: str = Field(default="memory", alias="POLICY_CACHE_BACKEND")
    policy_cache_ttl_seconds: int = Field(default=300, alias="POLICY_CACHE_TTL_SECONDS")
    role_lookup_timeout_seconds: float = Field(
        default=5.0, alias="ROLE_LOOKUP_TIMEOUT_SECONDS"
    )
    fuel_price_per_liter: int = Field(default=100, alias="FUEL_PRICE_PER_LITER")
    admin_identifiers_raw: str = Field(default="", alias="ADMIN_IDENTIFIERS")
    admin_email_keyword: str = Field(default="admin", alias="ADMIN_EMAIL_KEYWORD")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    @property
    def admin_identifiers(self) -> frozenset[str]:
        """Return the explicitly configured admin ids/emails, lower-cased."""

        values = self.admin_identifiers_raw.replace("\n", ",").split(",")
        return frozenset(value.strip().lower() for value in values if value.strip())

    @property
    def redis_policy_cache(self) -> bool:
        """Return ``True`` when the policy cache should live in Redis."""

        return self.policy_cache_backend.strip().lower() == "redis"


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
