"""Build Shortcut descriptions from Linear initiative, project and issue data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from .dates import format_timestamp, normalize_date
from .duplicates import MIGRATED_TICKET_MARKER

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import LinearDocument, LinearInitiative, LinearIssue, LinearProject, LinearTeam

SEPARATOR: Final[str] = "---"
INITIATIVE_MARKER: Final[str] = "Migrated from Linear Initiative"
PROJECT_MARKER: Final[str] = "Migrated from Linear Project"

DEFAULT_RELEVANT_TEAM_NAMES: Final[tuple[str, ...]] = ("Foundation", "Education")
DEFAULT_IGNORED_TEAM_NAME: Final[str] = "Studocu AI"


def filter_relevant_team_names(
    teams: Iterable[LinearTeam],
    relevant: Sequence[str] = DEFAULT_RELEVANT_TEAM_NAMES,
    ignored: str | None = DEFAULT_IGNORED_TEAM_NAME,
) -> list[str]:
    """Team names worth mentioning: containing a relevant name, never the ignored one.

    Examples:
        >>> from linear_to_shortcut_migrator.models import LinearTeam
        >>> filter_relevant_team_names([LinearTeam("1", "Studocu AI"), LinearTeam("2", "Studocu AI - Education")])
        ['Studocu AI - Education']
    """
    names: list[str] = []
    for team in teams:
        name = team.name.strip()
        if not name or name in names:
            continue
        lowered = name.lower()
        if ignored and lowered == ignored.lower():
            continue
        if any(r.lower() in lowered for r in relevant):
            names.append(name)
    return names


def _resources(documents: Sequence[LinearDocument]) -> list[str]:
    if not documents:
        return []
    return ["", "Resources:", *(f"- [{doc.title}]({doc.url})" for doc in documents)]


def build_objective_description(initiative: LinearInitiative) -> str:
    """Objective description: Linear text first, then the migration block.

    The target date only appears here, normalised when possible.
    """
    parts: list[str] = []
    description = (initiative.description or "").strip()
    if description:
        parts.append(description)

    if initiative.target_date or initiative.documents or not description:
        parts += ["", SEPARATOR, INITIATIVE_MARKER, f"Linear Initiative Status: {initiative.status}"]
        if initiative.target_date:
            parts.append(f"Target Date: {normalize_date(initiative.target_date) or initiative.target_date}")

    parts += _resources(initiative.documents)
    return "\n".join(parts)


def build_epic_description(
    project: LinearProject,
    *,
    relevant_team_names: Sequence[str] = DEFAULT_RELEVANT_TEAM_NAMES,
    ignored_team_name: str | None = DEFAULT_IGNORED_TEAM_NAME,
) -> str:
    """Epic description with the project's status, dates, people, teams and links."""
    parts: list[str] = []
    description = (project.description or "").strip()
    if description:
        parts.append(description)

    has_metadata = bool(
        project.start_date
        or project.target_date
        or project.progress is not None
        or project.lead
        or project.members
        or project.teams
        or project.initiatives
        or project.documents
    )
    if has_metadata or not description:
        if description:
            parts += ["", SEPARATOR]
        parts += [PROJECT_MARKER, f"Linear Project State: {project.state_description}"]

    if project.start_date:
        parts.append(f"Start Date: {project.start_date}")
    if project.target_date:
        parts.append(f"Target Date: {project.target_date}")
    if project.progress is not None:
        parts.append(f"Progress: {project.progress * 100:.2f}%")
    if project.lead:
        parts.append(f"Lead: {project.lead.name} ({project.lead.email})")
    if project.members:
        parts.append("Members: " + ", ".join(f"{m.name} ({m.email})" for m in project.members))

    teams = filter_relevant_team_names(project.teams, relevant_team_names, ignored_team_name)
    if teams:
        parts.append(f"Teams: {', '.join(teams)}")

    if project.initiatives:
        parts += ["", "Initiatives:", *(f"- {initiative.name}" for initiative in project.initiatives)]

    parts += _resources(project.documents)
    return "\n".join(parts)


def build_story_description(issue: LinearIssue, team_name: str) -> str:
    """Story description ending in the "Migrated Ticket <identifier>" marker block.

    The marker is what duplicate detection searches for on later runs.
    """
    parts: list[str] = []
    description = (issue.description or "").strip()
    if description:
        parts.append(description)

    parts += ["", SEPARATOR, f"{MIGRATED_TICKET_MARKER} {issue.identifier}", f"Team: {team_name}"]
    if issue.assignee:
        parts.append(f"Assigned to: {issue.assignee.name} ({issue.assignee.email})")
    if issue.started_at:
        parts.append(f"Started: {format_timestamp(issue.started_at)}")
    if issue.completed_at:
        parts.append(f"Completed: {format_timestamp(issue.completed_at)}")
    return "\n".join(parts)
