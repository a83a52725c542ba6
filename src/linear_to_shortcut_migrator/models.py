"""Data models for the entities exchanged between Linear and Shortcut.

Linear models are parsed from GraphQL payloads, where nested collections are
wrapped as connections (``{"nodes": [...]}``). Shortcut models are parsed from
REST v3 payloads. Every ``from_api`` constructor tolerates missing optional
keys, because both APIs omit fields that were never set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, NamedTuple

StateType = Literal["unstarted", "started", "done"]
StoryType = Literal["feature", "bug", "chore"]


def _nodes(obj: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Unwrap a GraphQL connection into its list of nodes."""
    if not obj:
        return []
    return obj.get("nodes") or []


# ---------------------------------------------------------------------------
# Linear (source)
# ---------------------------------------------------------------------------


@dataclass
class LinearTeam:
    """A Linear team (sub-teams are returned as regular teams)."""

    id: str
    name: str
    key: str = ""
    archived_at: str | None = None

    @property
    def archived(self) -> bool:
        return self.archived_at is not None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearTeam:
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            key=data.get("key") or "",
            archived_at=data.get("archivedAt"),
        )


@dataclass
class LinearUser:
    id: str
    name: str
    email: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearUser:
        return cls(id=data.get("id") or "", name=data.get("name") or "", email=data.get("email") or "")


@dataclass
class LinearDocument:
    """A document or resource link attached to an initiative or project."""

    title: str
    url: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearDocument:
        return cls(title=data.get("title") or "", url=data.get("url") or "")


@dataclass
class LinearRef:
    """A lightweight reference (id + name) to another Linear entity."""

    id: str
    name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearRef:
        return cls(id=data["id"], name=data.get("name") or data.get("title") or "")


@dataclass
class LinearLabel:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearLabel:
        return cls(id=data.get("id") or "", name=data.get("name") or "")


@dataclass
class LinearInitiative:
    """A Linear initiative, migrated to a Shortcut objective."""

    id: str
    name: str
    description: str | None = None
    status: str = ""
    target_date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    documents: list[LinearDocument] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearInitiative:
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            description=data.get("description"),
            status=data.get("status") or "",
            target_date=data.get("targetDate"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            documents=[LinearDocument.from_api(d) for d in _nodes(data.get("documents"))],
        )


@dataclass
class LinearStatus:
    """Status of a Linear project or issue.

    ``type`` is one of backlog, planned, unstarted, started, paused,
    completed, canceled (projects) or triage, backlog, unstarted, started,
    completed, canceled (issues).
    """

    id: str
    name: str
    type: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearStatus:
        return cls(id=data.get("id") or "", name=data.get("name") or "", type=data.get("type") or "")


@dataclass
class LinearProject:
    """A Linear project, migrated to a Shortcut epic."""

    id: str
    name: str
    description: str | None = None
    state: str = ""  # legacy field, superseded by status
    status: LinearStatus | None = None
    start_date: str | None = None
    target_date: str | None = None
    progress: float | None = None
    completed_at: str | None = None
    canceled_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    priority: int | None = None
    lead: LinearUser | None = None
    members: list[LinearUser] = field(default_factory=list)
    teams: list[LinearTeam] = field(default_factory=list)
    labels: list[LinearLabel] = field(default_factory=list)
    initiatives: list[LinearRef] = field(default_factory=list)
    documents: list[LinearDocument] = field(default_factory=list)

    @property
    def state_description(self) -> str:
        """Human-readable status, preferring the typed status over the legacy state."""
        if self.status:
            return f"{self.status.name} (type: {self.status.type})"
        return self.state

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearProject:
        status = data.get("status")
        lead = data.get("lead")
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            description=data.get("description"),
            state=data.get("state") or "",
            status=LinearStatus.from_api(status) if status else None,
            start_date=data.get("startDate"),
            target_date=data.get("targetDate"),
            progress=data.get("progress"),
            completed_at=data.get("completedAt"),
            canceled_at=data.get("canceledAt"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            priority=data.get("priority"),
            lead=LinearUser.from_api(lead) if lead else None,
            members=[LinearUser.from_api(m) for m in _nodes(data.get("members"))],
            teams=[LinearTeam.from_api(t) for t in _nodes(data.get("teams"))],
            labels=[LinearLabel.from_api(label) for label in _nodes(data.get("labels"))],
            initiatives=[LinearRef.from_api(i) for i in _nodes(data.get("initiatives"))],
            documents=[LinearDocument.from_api(d) for d in _nodes(data.get("documents"))],
        )


@dataclass
class LinearCycle:
    id: str
    name: str | None
    number: int

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearCycle:
        return cls(id=data.get("id") or "", name=data.get("name"), number=int(data["number"]))


@dataclass
class LinearIssue:
    """A Linear issue, migrated to a Shortcut story."""

    id: str
    identifier: str
    title: str
    state: LinearStatus
    description: str | None = None
    priority: int = 0  # 0 = none, 1 = urgent, 2 = high, 3 = medium, 4 = low
    assignee: LinearUser | None = None
    project: LinearRef | None = None
    labels: list[LinearLabel] = field(default_factory=list)
    estimate: float | None = None
    due_date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    cycle: LinearCycle | None = None
    parent_id: str | None = None
    children: list[LinearRef] = field(default_factory=list)

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]

    @property
    def is_child(self) -> bool:
        return self.parent_id is not None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LinearIssue:
        assignee = data.get("assignee")
        project = data.get("project")
        cycle = data.get("cycle")
        parent = data.get("parent")
        return cls(
            id=data["id"],
            identifier=data.get("identifier") or "",
            title=data.get("title") or "",
            state=LinearStatus.from_api(data.get("state") or {}),
            description=data.get("description"),
            priority=data.get("priority") or 0,
            assignee=LinearUser.from_api(assignee) if assignee else None,
            project=LinearRef.from_api(project) if project else None,
            labels=[LinearLabel.from_api(label) for label in _nodes(data.get("labels"))],
            estimate=data.get("estimate"),
            due_date=data.get("dueDate"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            started_at=data.get("startedAt"),
            completed_at=data.get("completedAt"),
            cycle=LinearCycle.from_api(cycle) if cycle and cycle.get("number") is not None else None,
            parent_id=parent.get("id") if parent else None,
            children=[LinearRef.from_api(c) for c in _nodes(data.get("children"))],
        )


# ---------------------------------------------------------------------------
# Shortcut (target)
# ---------------------------------------------------------------------------


@dataclass
class ShortcutTeam:
    """A Shortcut team, called a "group" in the REST API."""

    id: str
    name: str
    mention_name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ShortcutTeam:
        return cls(id=str(data["id"]), name=data.get("name") or "", mention_name=data.get("mention_name") or "")


@dataclass
class WorkflowState:
    id: int
    name: str
    type: str  # unstarted, started, done (backlog in some workspaces)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WorkflowState:
        return cls(id=int(data["id"]), name=data.get("name") or "", type=data.get("type") or "")


@dataclass
class Workflow:
    id: int
    name: str
    states: list[WorkflowState] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Workflow:
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            states=[WorkflowState.from_api(s) for s in data.get("states") or []],
        )


@dataclass
class ShortcutEpic:
    id: int
    name: str
    description: str = ""
    epic_state_id: int | None = None
    state: str | None = None  # human-readable state name
    archived: bool = False
    app_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ShortcutEpic:
        state = data.get("state")
        if isinstance(state, dict):
            state = state.get("name")
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            description=data.get("description") or "",
            epic_state_id=data.get("epic_state_id"),
            state=state,
            archived=bool(data.get("archived")),
            app_url=data.get("app_url"),
        )


@dataclass
class ShortcutObjective:
    id: int
    name: str
    description: str = ""
    state: str | None = None
    app_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ShortcutObjective:
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            description=data.get("description") or "",
            state=data.get("state"),
            app_url=data.get("app_url"),
        )


@dataclass
class ShortcutLabel:
    id: int
    name: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ShortcutLabel:
        return cls(id=int(data["id"]), name=data.get("name") or "")


@dataclass
class ShortcutMember:
    """A workspace member; contact details live under ``profile``."""

    id: str
    name: str
    email: str | None
    mention_name: str = ""
    deactivated: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ShortcutMember:
        profile = data.get("profile") or {}
        return cls(
            id=str(data["id"]),
            name=profile.get("name") or "",
            email=profile.get("email_address"),
            mention_name=profile.get("mention_name") or "",
            deactivated=bool(profile.get("deactivated")),
        )


@dataclass
class ShortcutIteration:
    id: int
    name: str
    number: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ShortcutIteration:
        number = data.get("number")
        return cls(id=int(data["id"]), name=data.get("name") or "", number=int(number) if number is not None else None)


@dataclass
class ShortcutStory:
    id: int
    name: str
    description: str = ""
    app_url: str | None = None
    epic_id: int | None = None
    story_type: str | None = None
    workflow_state_id: int | None = None
    external_links: list[str] = field(default_factory=list)
    owner_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ShortcutStory:
        links: list[str] = []
        for link in data.get("external_links") or []:
            # The API returns plain URL strings; older payloads used {"url": ...} objects
            if isinstance(link, dict):
                url = link.get("url")
                if url:
                    links.append(url)
            elif link:
                links.append(str(link))
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            description=data.get("description") or "",
            app_url=data.get("app_url") or data.get("url"),
            epic_id=data.get("epic_id"),
            story_type=data.get("story_type"),
            workflow_state_id=data.get("workflow_state_id"),
            external_links=links,
            owner_ids=[str(owner) for owner in data.get("owner_ids") or []],
        )


# ---------------------------------------------------------------------------
# Reconciliation results
# ---------------------------------------------------------------------------

UpsertAction = Literal["created", "updated", "unchanged", "duplicate", "failed"]


class UpsertResult(NamedTuple):
    """Outcome of reconciling one Linear entity with Shortcut."""

    target_id: int | None
    """Shortcut id of the created or existing entity; None when failed."""
    action: UpsertAction
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.action != "failed"

    @classmethod
    def failed(cls, error: str) -> UpsertResult:
        return cls(None, "failed", error)


@dataclass
class SummaryRecord:
    """One line of the run summary, pointing at a Shortcut entity."""

    target_id: int
    name: str
    url: str
    linear_id: str = ""
    details: dict[str, str] = field(default_factory=dict)
