"""Upsert Linear issues as Shortcut stories.

Stories have no natural key in Shortcut, so every issue is first looked up
through the ``DuplicateLocator`` over all teams of the run. A story found
that way is never recreated; instead ``reconcile`` brings it in line with
the issue (epic, owner, type, workflow state).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from .dates import normalize_date
from .description_builder import build_story_description
from .exceptions import ApiError
from .labels import priority_label
from .models import UpsertResult
from .status_mapper import WorkflowVariant, resolve_story_state, state_name
from .utils import drop_none

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .duplicates import DuplicateLocator
    from .labels import LabelCache
    from .members import MemberDirectory
    from .models import LinearIssue, ShortcutStory, StoryType, Workflow
    from .protocols import TargetWriter

logger: logging.Logger = logging.getLogger(__name__)

LINEAR_ISSUE_URL: Final[str] = "https://linear.app/issue/{identifier}"


def has_label_containing(issue: LinearIssue, word: str) -> bool:
    return any(word in name.lower() for name in issue.label_names)


def story_type_for(issue: LinearIssue) -> StoryType:
    """Story type: "bug" when any label mentions a bug, "feature" otherwise."""
    return "bug" if has_label_containing(issue, "bug") else "feature"


def workflow_variant_for(issue: LinearIssue) -> WorkflowVariant:
    return WorkflowVariant.DESIGN if has_label_containing(issue, "design") else WorkflowVariant.STANDARD


@dataclass
class ReconcileOutcome:
    """What ``StoryUpserter.reconcile`` changed on an existing story."""

    story: ShortcutStory | None = None
    changes: list[str] = field(default_factory=list)
    moved_state: bool = False


class StoryUpserter:
    def __init__(
        self,
        target: TargetWriter,
        *,
        team_id: str,
        team_name: str,
        workflows: Sequence[Workflow],
        members: MemberDirectory,
        labels: LabelCache,
        duplicates: DuplicateLocator,
        scope_team_ids: Sequence[str],
    ) -> None:
        self._target: TargetWriter = target
        self.team_id: str = team_id
        self.team_name: str = team_name
        self.workflows: list[Workflow] = list(workflows)
        self.members: MemberDirectory = members
        self.labels: LabelCache = labels
        self.duplicates: DuplicateLocator = duplicates
        self.scope_team_ids: list[str] = list(scope_team_ids)

    def resolve_state(self, issue: LinearIssue) -> int | None:
        return resolve_story_state(issue.state.name, self.workflows, workflow_variant_for(issue))

    def build_payload(
        self,
        issue: LinearIssue,
        workflow_state_id: int,
        epic_id: int | None = None,
        iteration_id: int | None = None,
    ) -> dict[str, Any]:
        owner_id = self.members.find_by_email(issue.assignee.email) if issue.assignee else None
        return drop_none(
            {
                "name": issue.title,
                "description": build_story_description(issue, self.team_name),
                "workflow_state_id": workflow_state_id,
                "story_type": story_type_for(issue),
                "group_id": self.team_id,
                "estimate": issue.estimate or None,
                "deadline": normalize_date(issue.due_date),
                "owner_ids": [owner_id] if owner_id else None,
                "epic_id": epic_id,
                "iteration_id": iteration_id,
            }
        )

    def upsert(
        self,
        issue: LinearIssue,
        epic_id: int | None = None,
        iteration_id: int | None = None,
    ) -> UpsertResult:
        """Create the story for ``issue`` unless one already exists in any team of the run.

        Returns:
            UpsertResult with action "duplicate" (existing id), "created" or "failed"
        """
        existing_id = self.duplicates.find(issue.identifier, self.scope_team_ids)
        if existing_id is not None:
            logger.info(f"Skipped duplicate: {issue.identifier} (already exists as story {existing_id})")
            return UpsertResult(existing_id, "duplicate")

        variant = workflow_variant_for(issue)
        if variant is WorkflowVariant.DESIGN:
            logger.info(f"Detected Design ticket for issue {issue.identifier} (will use Design workflow)")

        workflow_state_id = self.resolve_state(issue)
        if workflow_state_id is None:
            msg = f"Could not map status: {issue.state.name}"
            logger.error(f"{msg} ({issue.identifier})")
            return UpsertResult.failed(msg)

        names = list(issue.label_names)
        priority = priority_label(issue.priority)
        if priority:
            names.append(priority)
        _ = self.labels.resolve_all(names)

        payload = self.build_payload(issue, workflow_state_id, epic_id, iteration_id)
        try:
            story = self._target.create_story(payload)
        except ApiError as e:
            logger.error(f"Failed to create story for {issue.identifier}: {e}")  # noqa: TRY400
            return UpsertResult.failed(str(e))

        logger.info(f"Created story #{story.id} for {issue.identifier}: {story.name}")
        self.add_linear_link(story.id, issue)
        return UpsertResult(story.id, "created")

    def add_linear_link(self, story_id: int, issue: LinearIssue) -> None:
        """Attach the Linear issue URL to the story; failure only logs a warning."""
        url = LINEAR_ISSUE_URL.format(identifier=issue.identifier)
        try:
            self._target.add_external_link(story_id, url)
        except ApiError as e:
            logger.warning(f"Could not add external link for {issue.identifier}: {e}")

    def _apply(self, story_id: int, payload: dict[str, Any], description: str, outcome: ReconcileOutcome) -> bool:
        try:
            _ = self._target.update_story(story_id, payload)
        except ApiError as e:
            logger.warning(f"Failed to update {description} of story {story_id}: {e}")
            return False
        outcome.changes.append(description)
        return True

    def reconcile(
        self,
        story_id: int,
        issue: LinearIssue,
        epic_id: int | None = None,
        *,
        full: bool = True,
    ) -> ReconcileOutcome:
        """Fix up an existing story found as a duplicate.

        Attaches the epic when missing and corrects the story type. With
        ``full`` (parent issues) the owner and workflow state are synced too.
        Every fix is best-effort.
        """
        outcome = ReconcileOutcome()
        try:
            story = self._target.get_story(story_id)
        except ApiError as e:
            logger.warning(f"Could not fetch existing story {story_id} for {issue.identifier}: {e}")
            return outcome
        outcome.story = story

        if story.epic_id is None and epic_id is not None:
            logger.info(f"Story {story_id} missing epic - attaching to epic ID {epic_id}")
            _ = self._apply(story_id, {"epic_id": epic_id}, "epic", outcome)

        if full and issue.assignee:
            owner_id = self.members.find_by_email(issue.assignee.email)
            if owner_id and story.owner_ids != [owner_id]:
                logger.info(f'Assigning story {story_id} to "{issue.assignee.name}" ({issue.assignee.email})')
                _ = self._apply(story_id, {"owner_ids": [owner_id]}, "owner", outcome)

        expected_type = story_type_for(issue)
        if story.story_type != expected_type:
            logger.info(f"Updating story {story_id} type: {story.story_type or 'unknown'} -> {expected_type}")
            _ = self._apply(story_id, {"story_type": expected_type}, "story type", outcome)

        if full:
            expected_state = self.resolve_state(issue)
            if expected_state is not None and story.workflow_state_id != expected_state:
                logger.info(
                    f"Updating story {story_id} workflow state ({workflow_variant_for(issue).value}): "
                    f"{state_name(story.workflow_state_id, self.workflows)} -> "
                    f"{state_name(expected_state, self.workflows)}"
                )
                outcome.moved_state = self._apply(
                    story_id, {"workflow_state_id": expected_state}, "workflow state", outcome
                )

        return outcome
