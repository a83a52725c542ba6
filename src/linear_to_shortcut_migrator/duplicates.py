"""Detection of Shortcut entities that already correspond to Linear entities.

Stories are located through Shortcut's full-text search and confirmed on the
full story, because search hits carry partial data and match loosely.
Objectives and epics are matched by exact name against lists fetched once
per team.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Final, TypeVar

from .exceptions import ApiError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import ShortcutStory
    from .protocols import TargetWriter

logger: logging.Logger = logging.getLogger(__name__)

MIGRATED_TICKET_MARKER: Final[str] = "Migrated Ticket"
LEGACY_MARKER: Final[str] = "Migrated from Linear:"

T = TypeVar("T")


def search_queries(identifier: str, team_id: str) -> list[str]:
    """Search queries tried, in order, for one identifier within one team."""
    return [
        f'team:{team_id} "{MIGRATED_TICKET_MARKER} {identifier}"',
        f'team:{team_id} "{identifier}"',
    ]


def _mentions(text: str, phrase: str) -> bool:
    # "ENG-1" must not match inside "ENG-12"
    return re.search(re.escape(phrase) + r"(?![\w-])", text) is not None


def is_migrated_from(story: ShortcutStory, identifier: str) -> bool:
    """Whether a Shortcut story carries evidence of being migrated from ``identifier``."""
    description = story.description or ""
    if _mentions(description, f"{MIGRATED_TICKET_MARKER} {identifier}"):
        return True
    if _mentions(description, f"{LEGACY_MARKER} {identifier}"):
        return True
    return any(_mentions(url, identifier) for url in story.external_links)


class DuplicateLocator:
    """Finds the Shortcut story a Linear issue was already migrated to."""

    def __init__(self, target: TargetWriter) -> None:
        self._target: TargetWriter = target

    def find(self, identifier: str, scope_team_ids: Sequence[str]) -> int | None:
        """Return the id of a confirmed existing story, or None.

        Every team id in scope is searched, so an issue migrated earlier under
        another team is still found. Failures are logged and treated as
        "not found" for that query; this method never raises.
        """
        for team_id in scope_team_ids:
            for query in search_queries(identifier, team_id):
                story_id = self._confirm_hits(identifier, query)
                if story_id is not None:
                    logger.info(f"Found existing story {story_id} for {identifier} (team {team_id})")
                    return story_id
        return None

    def _confirm_hits(self, identifier: str, query: str) -> int | None:
        try:
            hits = self._target.search_stories(query)
        except ApiError as e:
            logger.debug(f"Story search {query!r} failed: {e}")
            return None

        for hit in hits:
            try:
                story = self._target.get_story(hit.id)
            except ApiError as e:
                logger.warning(f"Could not fetch story {hit.id} while checking for {identifier}: {e}")
                continue
            if is_migrated_from(story, identifier):
                return story.id
        return None


def find_by_name(name: str, entities: Iterable[T]) -> T | None:
    """First entity whose ``name`` equals ``name`` exactly."""
    for entity in entities:
        if getattr(entity, "name", None) == name:
            return entity
    return None
