"""
Custom exception classes for the Linear to Shortcut migration tool.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigurationError(MigrationError):
    """Raised when required configuration (tokens, team pairs) is missing or invalid."""


class ApiError(MigrationError):
    """Raised when a Linear or Shortcut request fails (non-2xx, network error, GraphQL errors)."""

    def __init__(self, message: str, *, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status: int | None = status
        self.body: str = body


class StateMappingError(MigrationError):
    """Raised when no workflow or epic state can be resolved for an entity."""


class EpicStateInferenceError(StateMappingError):
    """Raised when no epic state ids can be inferred from existing Shortcut epics."""
