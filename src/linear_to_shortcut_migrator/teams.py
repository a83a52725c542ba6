"""
Team discovery: pairing Linear teams with Shortcut teams by name.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Final, NamedTuple

from . import name_matcher
from .exceptions import ApiError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import ShortcutTeam
    from .protocols import SourceReader, TargetWriter

logger: logging.Logger = logging.getLogger(__name__)

# Linear team name -> Shortcut team name ("source:target", * glob allowed)
DEFAULT_TEAM_NAME_MAPPING: Final[tuple[str, ...]] = (
    "Studocu Education:Studocu AI - Education",
    "Education:Studocu AI - Education",
    "Studocu Foundation:Studocu AI - Foundation",
    "Foundation:Studocu AI - Foundation",
    "Inputs:Studocu AI - Foundation",
)

DEFAULT_TEAMS_TO_SKIP: Final[tuple[str, ...]] = ("Product Ideas", "Mobile", "Mobile App")


class TeamMapping(NamedTuple):
    """A Linear team and the Shortcut team its entities migrate into."""

    linear_team_id: str
    linear_team_name: str
    shortcut_team_id: str
    shortcut_team_name: str


class TeamNameTranslator:
    """Handles team name translation patterns."""

    def __init__(self, patterns: Sequence[str] | None) -> None:
        self.patterns: list[tuple[str, str]] = []

        for pattern in patterns or []:
            if ":" not in pattern:
                msg = f"Invalid pattern format: {pattern}"
                raise ValueError(msg)
            source, target = pattern.split(":", 1)
            self.patterns.append((source.strip(), target.strip()))

    def translate(self, team_name: str) -> str | None:
        """Mapped Shortcut team name, or None when no pattern applies.

        Exact entries win over glob patterns regardless of their order.
        """
        for source_pattern, target_pattern in self.patterns:
            if "*" not in source_pattern and source_pattern == team_name:
                return target_pattern
        for source_pattern, target_pattern in self.patterns:
            if "*" in source_pattern:
                # Convert glob pattern to regex; the first * is captured
                head, *rest = source_pattern.split("*")
                regex_pattern = re.escape(head) + "(.*)" + ".*".join(re.escape(part) for part in rest)
                match = re.match(f"^{regex_pattern}$", team_name)
                if match:
                    return target_pattern.replace("*", match.group(1))
        return None


def should_skip(team_name: str, teams_to_skip: Sequence[str]) -> bool:
    lowered = team_name.lower()
    return any(skip.lower() in lowered for skip in teams_to_skip)


def discover_team_mappings(
    source: SourceReader,
    target: TargetWriter,
    *,
    translator: TeamNameTranslator | None = None,
    teams_to_skip: Sequence[str] = DEFAULT_TEAMS_TO_SKIP,
) -> list[TeamMapping]:
    """Pair every active Linear team with a Shortcut team.

    A mapped name from ``translator`` is tried first, then the Linear name
    itself, both through the fuzzy ``name_matcher``. Unmatched teams are
    logged and left out.

    Raises:
        ApiError: If either team listing cannot be fetched
    """
    translator = translator or TeamNameTranslator(DEFAULT_TEAM_NAME_MAPPING)
    linear_teams = source.get_teams()
    shortcut_teams: list[ShortcutTeam] = target.get_teams()
    logger.info(f"Found {len(linear_teams)} Linear teams and {len(shortcut_teams)} Shortcut teams")

    mappings: list[TeamMapping] = []
    for team in linear_teams:
        if should_skip(team.name, teams_to_skip):
            logger.info(f'Skipping team "{team.name}" (in skip list)')
            continue

        match: ShortcutTeam | None = None
        mapped_name = translator.translate(team.name)
        if mapped_name:
            match = name_matcher.match(mapped_name, shortcut_teams, key=lambda t: t.name)
            if match:
                logger.debug(f'Using team mapping: "{team.name}" -> "{mapped_name}"')
        if match is None:
            match = name_matcher.match(team.name, shortcut_teams, key=lambda t: t.name)

        if match is None:
            logger.warning(
                f'No Shortcut team found for Linear team "{team.name}"'
                + (f' (mapped to "{mapped_name}")' if mapped_name else "")
                + f". Available Shortcut teams: {', '.join(t.name for t in shortcut_teams)}"
            )
            continue

        logger.info(f'Mapped: Linear "{team.name}" -> Shortcut "{match.name}"')
        mappings.append(TeamMapping(team.id, team.name, match.id, match.name))
    return mappings


def fallback_mappings(pairs: Sequence[tuple[str, str]]) -> list[TeamMapping]:
    """Mappings from explicitly configured (Linear id, Shortcut id) pairs."""
    return [TeamMapping(linear_id, linear_id, shortcut_id, shortcut_id) for linear_id, shortcut_id in pairs]


def resolve_team_mappings(
    source: SourceReader,
    target: TargetWriter,
    *,
    translator: TeamNameTranslator | None = None,
    teams_to_skip: Sequence[str] = DEFAULT_TEAMS_TO_SKIP,
    fallback_pairs: Sequence[tuple[str, str]] = (),
) -> list[TeamMapping]:
    """Discover team mappings, using configured id pairs when discovery fails."""
    try:
        return discover_team_mappings(source, target, translator=translator, teams_to_skip=teams_to_skip)
    except ApiError as e:
        if not fallback_pairs:
            raise
        logger.warning(f"Automatic team discovery failed ({e}); using {len(fallback_pairs)} configured team pair(s)")
        return fallback_mappings(fallback_pairs)
