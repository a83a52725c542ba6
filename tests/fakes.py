"""In-memory Linear and Shortcut implementations of the source/target protocols."""

from __future__ import annotations

import itertools
import re
from typing import Any

from linear_to_shortcut_migrator.exceptions import ApiError
from linear_to_shortcut_migrator.models import (
    LinearCycle,
    LinearInitiative,
    LinearIssue,
    LinearLabel,
    LinearProject,
    LinearRef,
    LinearStatus,
    LinearTeam,
    LinearUser,
    ShortcutEpic,
    ShortcutIteration,
    ShortcutLabel,
    ShortcutMember,
    ShortcutObjective,
    ShortcutStory,
    ShortcutTeam,
    Workflow,
    WorkflowState,
)

_QUERY_PATTERN = re.compile(r'^team:(\S+) "(.*)"$')


def development_workflow() -> Workflow:
    return Workflow(
        id=500,
        name="Development",
        states=[
            WorkflowState(1, "Inbox 📥", "unstarted"),
            WorkflowState(2, "Parking lot 🚗", "unstarted"),
            WorkflowState(3, "Refinement 🔄", "unstarted"),
            WorkflowState(4, "Ready 🏁", "unstarted"),
            WorkflowState(5, "Implementation In Progress 💪", "started"),
            WorkflowState(6, "Review In Progress 🕵️‍♀️", "started"),
            WorkflowState(7, "Done ✅", "done"),
        ],
    )


def design_workflow() -> Workflow:
    return Workflow(
        id=600,
        name="Design",
        states=[
            WorkflowState(11, "Parking lot 🚗", "unstarted"),
            WorkflowState(12, "Ready for refinement ‼️", "unstarted"),
            WorkflowState(13, "Next up ⏭️", "unstarted"),
            WorkflowState(14, "In Progress 💪 Ongoing", "started"),
            WorkflowState(15, "Ready for review - Feedback 👏", "started"),
            WorkflowState(16, "Done ✅", "done"),
        ],
    )


def make_issue(
    identifier: str,
    *,
    title: str | None = None,
    state: str = "Backlog",
    labels: tuple[str, ...] = (),
    project: LinearRef | None = None,
    parent_id: str | None = None,
    assignee_email: str | None = None,
    priority: int = 0,
    cycle_number: int | None = None,
) -> LinearIssue:
    return LinearIssue(
        id=f"id-{identifier}",
        identifier=identifier,
        title=title or f"Issue {identifier}",
        state=LinearStatus(id=f"s-{state}", name=state, type="backlog"),
        description=f"Description of {identifier}",
        priority=priority,
        assignee=LinearUser("u1", "Ada Lovelace", assignee_email) if assignee_email else None,
        project=project,
        labels=[LinearLabel(f"l-{name}", name) for name in labels],
        cycle=LinearCycle(f"c-{cycle_number}", None, cycle_number) if cycle_number is not None else None,
        parent_id=parent_id,
    )


class FakeLinear:
    """Linear workspace held in memory."""

    def __init__(
        self,
        teams: list[LinearTeam] | None = None,
        *,
        initiatives: list[LinearInitiative] | None = None,
        projects: dict[str, list[LinearProject]] | None = None,
        issues: dict[str, list[LinearIssue]] | None = None,
    ) -> None:
        self.teams: list[LinearTeam] = teams or []
        self.initiatives: list[LinearInitiative] = initiatives or []
        self.projects: dict[str, list[LinearProject]] = projects or {}
        self.issues: dict[str, list[LinearIssue]] = issues or {}
        self.fail_on: set[str] = set()

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            msg = f"Linear {method} failed"
            raise ApiError(msg, status=500)

    def get_teams(self) -> list[LinearTeam]:
        self._check("get_teams")
        return [team for team in self.teams if not team.archived]

    def get_initiatives(self) -> list[LinearInitiative]:
        self._check("get_initiatives")
        return list(self.initiatives)

    def get_projects(self, team_id: str) -> list[LinearProject]:
        self._check("get_projects")
        return list(self.projects.get(team_id, []))

    def get_issues(self, team_id: str) -> list[LinearIssue]:
        self._check("get_issues")
        return list(self.issues.get(team_id, []))


class FakeShortcut:
    """Shortcut workspace held in memory.

    Entities are stored as raw API payloads and parsed with the models'
    ``from_api``, like the real client does. Search returns partial stories
    (id and name) so callers must fetch the full story.
    """

    def __init__(
        self,
        teams: list[ShortcutTeam] | None = None,
        *,
        workflows: list[Workflow] | None = None,
        members: list[ShortcutMember] | None = None,
        iterations: list[ShortcutIteration] | None = None,
        epic_state_names: dict[int, str] | None = None,
    ) -> None:
        self.teams: list[ShortcutTeam] = teams or []
        self.workflows: list[Workflow] = workflows if workflows is not None else [development_workflow()]
        self.members: list[ShortcutMember] = members or []
        self.iterations: list[ShortcutIteration] = iterations or []
        self.epic_state_names: dict[int, str] = epic_state_names or {}
        self.labels: dict[int, dict[str, Any]] = {}
        self.objectives: dict[int, dict[str, Any]] = {}
        self.epics: dict[int, dict[str, Any]] = {}
        self.stories: dict[int, dict[str, Any]] = {}
        self.story_links: list[tuple[int, int, str]] = []
        self.created: list[str] = []
        self.updates: list[tuple[str, int, dict[str, Any]]] = []
        self.fail_on: set[str] = set()
        self._ids = itertools.count(1000)

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            msg = f"Shortcut {method} failed"
            raise ApiError(msg, status=500)

    # --- Seeding helpers -------------------------------------------------------

    def add_epic(self, name: str, epic_state_id: int, group_id: str | None = None) -> int:
        epic_id = next(self._ids)
        self.epics[epic_id] = {
            "id": epic_id,
            "name": name,
            "epic_state_id": epic_state_id,
            "state": self.epic_state_names.get(epic_state_id),
            "group_id": group_id,
        }
        return epic_id

    def add_story(self, group_id: str, **fields: Any) -> int:
        story_id = next(self._ids)
        self.stories[story_id] = {"id": story_id, "group_id": group_id, "name": "", "description": "", **fields}
        return story_id

    # --- TargetWriter ----------------------------------------------------------

    def get_teams(self) -> list[ShortcutTeam]:
        self._check("get_teams")
        return list(self.teams)

    def get_workflows(self, team_id: str) -> list[Workflow]:
        self._check("get_workflows")
        return list(self.workflows)

    def get_members(self) -> list[ShortcutMember]:
        self._check("get_members")
        return list(self.members)

    def get_iterations(self, team_id: str) -> list[ShortcutIteration]:
        self._check("get_iterations")
        return list(self.iterations)

    def get_labels(self) -> list[ShortcutLabel]:
        self._check("get_labels")
        return [ShortcutLabel.from_api(raw) for raw in self.labels.values()]

    def create_label(self, name: str) -> ShortcutLabel:
        self._check("create_label")
        label_id = next(self._ids)
        self.labels[label_id] = {"id": label_id, "name": name}
        self.created.append("label")
        return ShortcutLabel.from_api(self.labels[label_id])

    def get_objectives(self) -> list[ShortcutObjective]:
        self._check("get_objectives")
        return [ShortcutObjective.from_api(raw) for raw in self.objectives.values()]

    def create_objective(self, payload: dict[str, Any]) -> ShortcutObjective:
        self._check("create_objective")
        objective_id = next(self._ids)
        self.objectives[objective_id] = {"id": objective_id, **payload}
        self.created.append("objective")
        return ShortcutObjective.from_api(self.objectives[objective_id])

    def update_objective(self, objective_id: int, payload: dict[str, Any]) -> ShortcutObjective:
        self._check("update_objective")
        self.objectives[objective_id].update(payload)
        self.updates.append(("objective", objective_id, payload))
        return ShortcutObjective.from_api(self.objectives[objective_id])

    def get_epics(self, team_id: str) -> list[ShortcutEpic]:
        self._check("get_epics")
        return [ShortcutEpic.from_api(raw) for raw in self.epics.values()]

    def create_epic(self, payload: dict[str, Any]) -> ShortcutEpic:
        self._check("create_epic")
        epic_id = next(self._ids)
        state = self.epic_state_names.get(payload.get("epic_state_id", -1))
        self.epics[epic_id] = {"id": epic_id, "state": state, **payload}
        self.created.append("epic")
        return ShortcutEpic.from_api(self.epics[epic_id])

    def update_epic(self, epic_id: int, payload: dict[str, Any]) -> ShortcutEpic:
        self._check("update_epic")
        self.epics[epic_id].update(payload)
        self.updates.append(("epic", epic_id, payload))
        return ShortcutEpic.from_api(self.epics[epic_id])

    def search_stories(self, query: str) -> list[ShortcutStory]:
        self._check("search_stories")
        match = _QUERY_PATTERN.match(query)
        if not match:
            return []
        group_id, phrase = match.groups()
        hits: list[ShortcutStory] = []
        for raw in self.stories.values():
            if raw.get("group_id") != group_id:
                continue
            haystack = " ".join([raw.get("name", ""), raw.get("description", ""), *raw.get("external_links", [])])
            if phrase in haystack:
                hits.append(ShortcutStory(id=raw["id"], name=raw.get("name", "")))
        return hits

    def get_story(self, story_id: int) -> ShortcutStory:
        self._check("get_story")
        if story_id not in self.stories:
            msg = f"Story {story_id} not found"
            raise ApiError(msg, status=404)
        return ShortcutStory.from_api(self.stories[story_id])

    def create_story(self, payload: dict[str, Any]) -> ShortcutStory:
        self._check("create_story")
        fields = {key: value for key, value in payload.items() if key != "group_id"}
        story_id = self.add_story(payload.get("group_id", ""), **fields)
        self.created.append("story")
        return ShortcutStory.from_api(self.stories[story_id])

    def update_story(self, story_id: int, payload: dict[str, Any]) -> ShortcutStory:
        self._check("update_story")
        self.stories[story_id].update(payload)
        self.updates.append(("story", story_id, payload))
        return ShortcutStory.from_api(self.stories[story_id])

    def add_external_link(self, story_id: int, url: str) -> None:
        self._check("add_external_link")
        links = self.stories[story_id].setdefault("external_links", [])
        if url not in links:
            links.append(url)

    def create_story_link(self, subject_id: int, object_id: int, verb: str = "relates to") -> None:
        self._check("create_story_link")
        self.story_links.append((subject_id, object_id, verb))
