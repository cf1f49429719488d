"""Domain enums shared across the relay."""

from .roles import DECLARABLE_ROLES, SessionRole

__all__ = ["DECLARABLE_ROLES", "SessionRole"]
