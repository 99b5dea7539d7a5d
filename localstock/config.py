"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_api_key() -> str:
    # LOCALSTOCK_INGESTION_API_KEY takes precedence over BACKEND_API_KEY.
    return _get_env("LOCALSTOCK_INGESTION_API_KEY", "") or _get_env("BACKEND_API_KEY", "")


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    log_level: str = _get_env("LOG_LEVEL", "INFO")
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "300"))
    cache_sweep_interval_seconds: int = int(_get_env("CACHE_SWEEP_INTERVAL_SECONDS", "60"))
    cache_backend: str = _get_env("CACHE_BACKEND", "memory").lower()
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    guard_min_margin: float = float(_get_env("GUARD_MIN_MARGIN", "30"))
    guard_min_trust_score: float = float(_get_env("GUARD_MIN_TRUST_SCORE", "80"))
    guard_max_eta_minutes: float = float(_get_env("GUARD_MAX_ETA_MINUTES", "480"))
    guard_max_distance_miles: float = float(_get_env("GUARD_MAX_DISTANCE_MILES", "50"))
    backend_base: str = _get_env("BACKEND_BASE", "http://localhost:8000")
    backend_api_key: str = _get_api_key()
    backend_timeout_seconds: float = float(_get_env("BACKEND_TIMEOUT_SECONDS", "5.0"))
    backend_radius_km: float = float(_get_env("BACKEND_RADIUS_KM", "25"))
    recent_requests_limit: int = int(_get_env("RECENT_REQUESTS_LIMIT", "20"))
    load_sample_data: bool = _get_env("LOAD_SAMPLE_DATA", "true").lower() in {"1", "true", "yes"}


settings = Settings()
