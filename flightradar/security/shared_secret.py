"""Shared-secret check for HTTP producers and operator endpoints."""

from __future__ import annotations

import hmac
import logging

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from flightradar.config import settings

logger = logging.getLogger("flightradar.security")

REPORT_SECRET_HEADER = "X-FlightRadar-Secret"

report_secret_header = APIKeyHeader(name=REPORT_SECRET_HEADER, auto_error=False)


def _auth_error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})


def secrets_match(provided: str, expected: str) -> bool:
    """Compare two secrets in constant time."""

    return hmac.compare_digest(provided.encode(), expected.encode())


async def require_report_secret(
    secret: str | None = Security(report_secret_header),
) -> None:
    """Reject requests that do not carry the configured shared secret."""

    if not settings.require_report_secret:
        return

    if not settings.report_secret:
        logger.error("Report secret is not configured; rejecting request")
        raise _auth_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "secret_misconfigured",
            "Shared secret is not configured",
        )

    if not secret or not secret.strip():
        raise _auth_error(status.HTTP_401_UNAUTHORIZED, "secret_missing", "Shared secret header is required")

    if not secrets_match(secret.strip(), settings.report_secret):
        raise _auth_error(status.HTTP_401_UNAUTHORIZED, "secret_invalid", "Invalid shared secret")
