"""
Linear to Shortcut Migration Tool

Migrates Linear initiatives, projects and issues to Shortcut objectives,
epics and stories. Reruns are safe: existing entities are detected and
reconciled instead of being created again.
"""

from __future__ import annotations

from .cli import main
from .config import MigrationConfig, load_config
from .exceptions import ApiError, ConfigurationError, EpicStateInferenceError, MigrationError, StateMappingError
from .orchestrator import MigrationResult, MigrationStats, Migrator
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "ConfigurationError",
    "EpicStateInferenceError",
    "MigrationConfig",
    "MigrationError",
    "MigrationResult",
    "MigrationStats",
    "Migrator",
    "StateMappingError",
    "load_config",
    "main",
    "setup_logging",
]
