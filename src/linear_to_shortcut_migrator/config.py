"""
Run configuration assembled from a .env file, the environment and the command line.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from dotenv import load_dotenv

from . import linear_utils, shortcut_utils
from .description_builder import DEFAULT_IGNORED_TEAM_NAME, DEFAULT_RELEVANT_TEAM_NAMES
from .exceptions import ConfigurationError
from .teams import DEFAULT_TEAM_NAME_MAPPING, DEFAULT_TEAMS_TO_SKIP
from .utils import PassError, parse_bool

if TYPE_CHECKING:
    import argparse
    from collections.abc import Mapping

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_REQUEST_DELAY: Final[float] = 0.1
DEFAULT_TEST_LIMIT: Final[int] = 1

_TEAM_PAIR_PATTERN: Final[re.Pattern[str]] = re.compile(r"^LINEAR_TEAM_(\d+)_ID$")


@dataclass
class MigrationConfig:
    """Settings for one migration run."""

    linear_token: str
    shortcut_token: str
    test_mode: bool = False
    test_limit: int = DEFAULT_TEST_LIMIT
    skip_epic_objective_creation: bool = False
    update_existing: bool = False
    team_name_mapping: list[str] = field(default_factory=lambda: list(DEFAULT_TEAM_NAME_MAPPING))
    teams_to_skip: list[str] = field(default_factory=lambda: list(DEFAULT_TEAMS_TO_SKIP))
    relevant_team_names: list[str] = field(default_factory=lambda: list(DEFAULT_RELEVANT_TEAM_NAMES))
    ignored_team_name: str | None = DEFAULT_IGNORED_TEAM_NAME
    fallback_team_pairs: list[tuple[str, str]] = field(default_factory=list)
    request_delay: float = DEFAULT_REQUEST_DELAY
    workspace_slug: str | None = None


def fallback_team_pairs(environ: Mapping[str, str]) -> list[tuple[str, str]]:
    """(Linear id, Shortcut id) pairs from LINEAR_TEAM_<n>_ID / SHORTCUT_TEAM_<n>_ID, both required."""
    pairs: list[tuple[int, str, str]] = []
    for key, value in environ.items():
        match = _TEAM_PAIR_PATTERN.match(key)
        if not match or not value.strip():
            continue
        number = match.group(1)
        shortcut_id = environ.get(f"SHORTCUT_TEAM_{number}_ID", "").strip()
        if shortcut_id:
            pairs.append((int(number), value.strip(), shortcut_id))
    return [(linear_id, shortcut_id) for _, linear_id, shortcut_id in sorted(pairs)]


def _parse_int(value: str | None, name: str, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as e:
        msg = f"{name} must be an integer, got {value!r}"
        raise ConfigurationError(msg) from e


def load_config(
    args: argparse.Namespace | None = None,
    *,
    env_file: str | None = ".env",
    environ: Mapping[str, str] | None = None,
) -> MigrationConfig:
    """Build the run configuration.

    Precedence, lowest first: ``.env`` file, process environment, command line.

    Args:
        args: Parsed command-line arguments (see ``cli.parse_arguments``)
        env_file: Dotenv file to load; None to skip
        environ: Environment to read; defaults to ``os.environ``

    Raises:
        ConfigurationError: If a token is missing or a value is malformed
    """
    if env_file:
        _ = load_dotenv(env_file)
        logger.debug(f"Loaded environment from {env_file}")
    env: Mapping[str, str] = os.environ if environ is None else environ

    linear_pass_path: str | None = getattr(args, "linear_pass_token", None)
    shortcut_pass_path: str | None = getattr(args, "shortcut_pass_token", None)
    linear_token = env.get("LINEAR_API_TOKEN", "").strip() if not linear_pass_path else ""
    shortcut_token = env.get("SHORTCUT_API_TOKEN", "").strip() if not shortcut_pass_path else ""
    try:
        linear_token = linear_token or linear_utils.get_token(linear_pass_path) or ""
        shortcut_token = shortcut_token or shortcut_utils.get_token(shortcut_pass_path) or ""
    except (ValueError, PassError) as e:
        msg = f"Could not read API token from pass: {e}"
        raise ConfigurationError(msg) from e

    if not linear_token:
        msg = "LINEAR_API_TOKEN is not set. Add it to .env, the environment, or pass --linear-pass-token."
        raise ConfigurationError(msg)
    if not shortcut_token:
        msg = "SHORTCUT_API_TOKEN is not set. Add it to .env, the environment, or pass --shortcut-pass-token."
        raise ConfigurationError(msg)

    config = MigrationConfig(
        linear_token=linear_token,
        shortcut_token=shortcut_token,
        test_mode=parse_bool(env.get("TEST_MODE")),
        test_limit=_parse_int(env.get("TEST_LIMIT"), "TEST_LIMIT", DEFAULT_TEST_LIMIT),
        skip_epic_objective_creation=parse_bool(env.get("SKIP_EPIC_OBJECTIVE_CREATION")),
        update_existing=parse_bool(env.get("UPDATE_EXISTING_EPICS")),
        fallback_team_pairs=fallback_team_pairs(env),
        workspace_slug=env.get("SHORTCUT_WORKSPACE") or None,
    )

    if args is not None:
        if getattr(args, "test_mode", False):
            config.test_mode = True
        if getattr(args, "test_limit", None) is not None:
            config.test_limit = args.test_limit
        if getattr(args, "skip_epics_objectives", False):
            config.skip_epic_objective_creation = True
        if getattr(args, "update_existing", False):
            config.update_existing = True
        if getattr(args, "team_map", None):
            # Command-line patterns are tried before the built-in table
            config.team_name_mapping = [*args.team_map, *config.team_name_mapping]
        if getattr(args, "skip_team", None):
            config.teams_to_skip = [*config.teams_to_skip, *args.skip_team]
        if getattr(args, "delay", None) is not None:
            config.request_delay = args.delay
        if getattr(args, "workspace", None):
            config.workspace_slug = args.workspace

    if config.test_limit < 1:
        msg = f"Test limit must be at least 1, got {config.test_limit}"
        raise ConfigurationError(msg)
    if config.request_delay < 0:
        msg = f"Request delay cannot be negative, got {config.request_delay}"
        raise ConfigurationError(msg)
    return config
