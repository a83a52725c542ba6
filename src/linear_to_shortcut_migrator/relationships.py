"""Parent/child issue relationships and their Shortcut story links."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .exceptions import ApiError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import LinearIssue
    from .protocols import TargetWriter

logger: logging.Logger = logging.getLogger(__name__)

RELATES_TO: Final[str] = "relates to"


@dataclass
class IssueHierarchy:
    """Issues of one team split into parents (no Linear parent) and children."""

    parents: list[LinearIssue]
    children: list[LinearIssue]
    parent_identifiers: dict[str, str]
    """Linear issue id -> identifier, for every parent issue of the team."""


def split_hierarchy(issues: Sequence[LinearIssue], all_issues: Sequence[LinearIssue] | None = None) -> IssueHierarchy:
    """Separate parent and child issues.

    Args:
        issues: Issues to process this run (possibly a test-mode subset)
        all_issues: Every issue of the team, used to name parents outside the subset
    """
    return IssueHierarchy(
        parents=[issue for issue in issues if not issue.is_child],
        children=[issue for issue in issues if issue.is_child],
        parent_identifiers={issue.id: issue.identifier for issue in all_issues or issues if not issue.is_child},
    )


def link_child_to_parent(
    target: TargetWriter,
    child_story_id: int,
    parent_story_id: int,
    parent_identifier: str | None = None,
) -> bool:
    """Create a "relates to" link from the child story to its parent story.

    Returns:
        True when the link was created; failures are logged as warnings
    """
    try:
        target.create_story_link(child_story_id, parent_story_id, RELATES_TO)
    except ApiError as e:
        logger.warning(f"Could not add relationship from story {child_story_id} to parent {parent_story_id}: {e}")
        return False
    suffix = f" ({parent_identifier})" if parent_identifier else ""
    logger.info(f"Added relationship to parent story {parent_story_id}{suffix}")
    return True
