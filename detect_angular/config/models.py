"""Config models.

This module defines Pydantic models for environment- and flag-based
configuration. The Grafana token is only ever read from the environment so it
does not end up in shell history or process listings.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..adapters.grafana import DEFAULT_BASE_URL
from ..domain.detector import DEFAULT_MAX_CONCURRENCY


class GrafanaConfig(BaseModel):
    """Connection settings for the target Grafana instance.

    Attributes
    ----------
    url: str
        Grafana API URL, including the ``/api`` suffix.
    token: str
        Service account token, or ``user:password`` for basic auth.
    insecure: bool
        Skip TLS certificate verification.
    timeout_seconds: int
        HTTP request timeout in seconds.
    """

    url: str = Field(DEFAULT_BASE_URL, description="Grafana API URL")
    token: str = Field(..., min_length=1, description="Authentication token")
    insecure: bool = Field(False, description="Skip TLS verification")
    timeout_seconds: int = Field(30, ge=1)
    max_retries: int = Field(1, ge=0, description="Number of retry attempts")
    backoff_initial_ms: int = Field(
        200, ge=0, description="Initial backoff in milliseconds"
    )
    backoff_multiplier: float = Field(
        2.0, ge=1.0, description="Backoff multiplier per attempt"
    )


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    grafana_token: Optional[str]
        Token for the Grafana API, read from ``GRAFANA_TOKEN``.
    max_concurrency: int
        Maximum number of concurrent dashboard downloads.
    interval_seconds: int
        Detection refresh interval in HTTP server mode.
    timeout_seconds: int
        HTTP request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="DETECT_ANGULAR_", extra="ignore"
    )

    log_level: str = Field("INFO")
    grafana_token: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "GRAFANA_TOKEN", "DETECT_ANGULAR_GRAFANA_TOKEN"
        ),
        description="Grafana service account token or user:password",
    )
    max_concurrency: int = Field(
        DEFAULT_MAX_CONCURRENCY,
        ge=1,
        description="Maximum number of concurrent dashboard downloads",
    )
    interval_seconds: int = Field(
        300,
        ge=1,
        description="Detection refresh interval in HTTP server mode",
    )
    timeout_seconds: int = Field(30, ge=1)
