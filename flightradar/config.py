"""Configuration settings for the FlightRadar relay."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger("flightradar.config")


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_report_secret_from_ssm(parameter_name: str) -> str:
    """Fetch the shared report secret from AWS SSM Parameter Store.

    The value is cached in-memory to avoid repeated SSM calls. Any failure to
    retrieve the secret results in a runtime error.
    """

    client = boto3.client(
        "ssm",
        region_name=os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "us-east-1",
    )
    try:
        response = client.get_parameter(Name=parameter_name, WithDecryption=True)
        value = response.get("Parameter", {}).get("Value")
    except (ClientError, BotoCoreError) as exc:  # pragma: no cover - AWS error passthrough
        logger.error("Failed to load report secret from SSM: %s", exc)
        raise RuntimeError("Unable to load report secret from SSM") from exc

    if not value:
        logger.error("Received empty report secret from SSM")
        raise RuntimeError("Report secret not configured in SSM")

    return value


@dataclass
class Settings:
    """Application configuration loaded from environment variables."""

    flightradar_env: str = os.getenv("FLIGHTRADAR_ENV", "local")
    log_level: str = os.getenv("FLIGHTRADAR_LOG_LEVEL", "INFO")

    # Liveness sweep
    liveness_timeout_seconds: float = float(
        os.getenv("FLIGHTRADAR_LIVENESS_TIMEOUT_SECONDS", "30")
    )
    sweep_interval_seconds: float = float(os.getenv("FLIGHTRADAR_SWEEP_INTERVAL_SECONDS", "5"))
    clear_history_on_timeout: bool = _get_bool("FLIGHTRADAR_CLEAR_HISTORY_ON_TIMEOUT")

    # Track retention
    retention_hours: float = float(os.getenv("FLIGHTRADAR_RETENTION_HOURS", "12"))
    prune_interval_seconds: float = float(
        os.getenv("FLIGHTRADAR_PRUNE_INTERVAL_SECONDS", str(6 * 60 * 60))
    )
    track_max_raw_points: int = int(os.getenv("FLIGHTRADAR_TRACK_MAX_RAW_POINTS", "20000"))
    max_pending_writes: int = int(os.getenv("FLIGHTRADAR_MAX_PENDING_WRITES", "10000"))

    # Track simplification budget
    track_min_points: int = int(os.getenv("FLIGHTRADAR_TRACK_MIN_POINTS", "500"))
    track_max_points: int = int(os.getenv("FLIGHTRADAR_TRACK_MAX_POINTS", "5000"))
    track_points_per_minute: float = float(
        os.getenv("FLIGHTRADAR_TRACK_POINTS_PER_MINUTE", "6")
    )

    # Observer broadcast
    flush_interval_ms: int = int(os.getenv("FLIGHTRADAR_FLUSH_INTERVAL_MS", "100"))
    max_pending_updates: int = int(os.getenv("FLIGHTRADAR_MAX_PENDING_UPDATES", "1000"))
    history_chunk_size: int = int(os.getenv("FLIGHTRADAR_HISTORY_CHUNK_SIZE", "200"))

    # Shared-secret gate for HTTP reports and manual clears
    report_secret: str = os.getenv("FLIGHTRADAR_REPORT_SECRET", "")
    report_secret_ssm_param: str | None = os.getenv("FLIGHTRADAR_REPORT_SECRET_SSM_PARAM")
    require_report_secret: bool = _get_bool(
        "FLIGHTRADAR_REQUIRE_REPORT_SECRET",
        default=os.getenv("FLIGHTRADAR_ENV", "local").lower()
        in {"prod", "production"},
    )


settings = Settings()

if not settings.report_secret and settings.report_secret_ssm_param:
    try:
        settings.report_secret = get_report_secret_from_ssm(settings.report_secret_ssm_param)
    except RuntimeError:
        logger.warning("Report secret not available at import time")

__all__ = ["settings", "Settings", "get_report_secret_from_ssm"]
