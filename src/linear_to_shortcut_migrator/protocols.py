"""Protocols defining the contracts for the source and target systems.

The migration architecture separates concerns into three parts:

1. SourceReader: Reads teams, initiatives, projects and issues from Linear
2. TargetWriter: Reads and writes groups, epics, objectives and stories in Shortcut
3. Migrator: Reconciles the two, deciding what to create, update or skip

The reconciliation engine (matchers, mappers, upserters, orchestrator) only
depends on these protocols. ``LinearClient`` and ``ShortcutClient`` implement
them over HTTP; the test-suite implements them in memory.

Contract for both sides: any transport failure raises ``ApiError``. The
engine decides per call site whether such a failure is fatal for the team,
counted against one entity, or ignored as a best-effort side-write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .models import (
        LinearInitiative,
        LinearIssue,
        LinearProject,
        LinearTeam,
        ShortcutEpic,
        ShortcutIteration,
        ShortcutLabel,
        ShortcutMember,
        ShortcutObjective,
        ShortcutStory,
        ShortcutTeam,
        Workflow,
    )


class SourceReader(Protocol):
    """Read-only view of Linear.

    Implementations must never mutate the source system.
    """

    def get_teams(self) -> list[LinearTeam]:
        """Return active teams (archived teams excluded), sub-teams included."""
        ...

    def get_initiatives(self) -> list[LinearInitiative]:
        """Return all initiatives of the organization."""
        ...

    def get_projects(self, team_id: str) -> list[LinearProject]:
        """Return the projects a team participates in."""
        ...

    def get_issues(self, team_id: str) -> list[LinearIssue]:
        """Return every issue of a team, fully paginated."""
        ...


class TargetWriter(Protocol):
    """Read/write view of Shortcut.

    Implementations create and update, and never delete.

    Workflows, epics and iterations are fetched per team; implementations may
    fall back to workspace-wide listings where the team-scoped endpoint is not
    available.
    """

    def get_teams(self) -> list[ShortcutTeam]: ...

    def get_workflows(self, team_id: str) -> list[Workflow]: ...

    def get_members(self) -> list[ShortcutMember]: ...

    def get_iterations(self, team_id: str) -> list[ShortcutIteration]: ...

    def get_labels(self) -> list[ShortcutLabel]: ...

    def create_label(self, name: str) -> ShortcutLabel: ...

    def get_objectives(self) -> list[ShortcutObjective]: ...

    def create_objective(self, payload: dict[str, Any]) -> ShortcutObjective: ...

    def update_objective(self, objective_id: int, payload: dict[str, Any]) -> ShortcutObjective: ...

    def get_epics(self, team_id: str) -> list[ShortcutEpic]: ...

    def create_epic(self, payload: dict[str, Any]) -> ShortcutEpic: ...

    def update_epic(self, epic_id: int, payload: dict[str, Any]) -> ShortcutEpic: ...

    def search_stories(self, query: str) -> list[ShortcutStory]:
        """Full-text story search; hits may carry only partial story data."""
        ...

    def get_story(self, story_id: int) -> ShortcutStory: ...

    def create_story(self, payload: dict[str, Any]) -> ShortcutStory: ...

    def update_story(self, story_id: int, payload: dict[str, Any]) -> ShortcutStory: ...

    def add_external_link(self, story_id: int, url: str) -> None: ...

    def create_story_link(self, subject_id: int, object_id: int, verb: str = "relates to") -> None: ...
