"""Connection role definitions for the relay protocol."""

from __future__ import annotations

from enum import Enum


class SessionRole(str, Enum):
    """Role a connection declares in its first ``hello`` message."""

    UNKNOWN = "unknown"
    PLAYER = "player"
    OBSERVER = "observer"


DECLARABLE_ROLES: frozenset[SessionRole] = frozenset(
    {SessionRole.PLAYER, SessionRole.OBSERVER}
)

__all__ = ["DECLARABLE_ROLES", "SessionRole"]
