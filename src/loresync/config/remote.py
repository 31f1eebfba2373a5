"""Remote campaign service configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import float_env_var, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_REMOTE_BASE_URL = "https://archivist-api-production.up.railway.app/v1"
DEFAULT_REMOTE_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True, slots=True)
class RemoteServiceConfig:
    """Holds the remote campaign service credentials and HTTP behaviour."""

    api_key: str
    campaign_id: str
    resilience: ResilienceConfig


def get_remote_config(*, resilience: ResilienceConfig | None = None) -> RemoteServiceConfig:
    values = require_env_vars(("REMOTE_API_KEY", "REMOTE_CAMPAIGN_ID"))
    api_key = values["REMOTE_API_KEY"]
    base_url = optional_env_var("REMOTE_BASE_URL", DEFAULT_REMOTE_BASE_URL)

    return RemoteServiceConfig(
        api_key=api_key,
        campaign_id=values["REMOTE_CAMPAIGN_ID"],
        resilience=resilience
        or ResilienceConfig(
            name="campaign-service",
            base_url=base_url,
            timeout_seconds=float_env_var("REMOTE_TIMEOUT_SECONDS", DEFAULT_REMOTE_TIMEOUT_SECONDS),
            retry=RetryPolicy(total=3),
            ratelimit=RateLimit(max_calls=8, per_seconds=1.0),
            default_headers={"x-api-key": api_key, "Content-Type": "application/json"},
        ),
    )
