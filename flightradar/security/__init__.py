"""Security utilities for the FlightRadar relay."""

from .shared_secret import REPORT_SECRET_HEADER, require_report_secret, secrets_match

__all__ = ["REPORT_SECRET_HEADER", "require_report_secret", "secrets_match"]
