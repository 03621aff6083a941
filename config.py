"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Challenge timings are in seconds here; the challenge service converts them to
milliseconds because tokens embed a millisecond timestamp.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChallengeSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    challenge_length: int = Field(default=6, ge=1)
    challenge_validity_seconds: int = Field(default=600, gt=0)
    challenge_clock_skew_seconds: int = Field(default=60, ge=0)
    challenge_sweep_interval_seconds: float = Field(default=600.0, gt=0)
    challenge_token_prefix: str = Field(default="custom_", pattern=r"^[A-Za-z0-9]+_$")
    challenge_min_token_length: int = 20

    @property
    def validity_ms(self) -> int:
        return self.challenge_validity_seconds * 1000

    @property
    def clock_skew_ms(self) -> int:
        return self.challenge_clock_skew_seconds * 1000


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; without Redis the challenge store is process-local
    redis_uri: Optional[str] = None


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_name: str = "ecolearn-verification"

    # CORS: the SPA is served from a different origin
    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    challenge: Optional[ChallengeSettings] = None
    redis: Optional[RedisSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.challenge is None:
            self.challenge = ChallengeSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
