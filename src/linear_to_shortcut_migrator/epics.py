"""Upsert Linear projects as Shortcut epics."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

from .dates import normalize_date
from .description_builder import (
    DEFAULT_IGNORED_TEAM_NAME,
    DEFAULT_RELEVANT_TEAM_NAMES,
    build_epic_description,
    filter_relevant_team_names,
)
from .exceptions import ApiError
from .labels import priority_label, team_label
from .models import UpsertResult
from .status_mapper import resolve_epic_state
from .utils import drop_none

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .labels import LabelCache
    from .members import MemberDirectory
    from .models import LinearProject, WorkflowState
    from .protocols import TargetWriter

logger: logging.Logger = logging.getLogger(__name__)

# Fields accepted on PUT /epics/{id}; group_id is only set on creation
UPDATE_FIELDS: Final[tuple[str, ...]] = (
    "name",
    "description",
    "epic_state_id",
    "planned_start_date",
    "deadline",
    "owner_ids",
    "objective_ids",
)


class EpicUpserter:
    """Creates or updates the epic of each Linear project for one Shortcut team.

    Labels (project labels, priority, relevant teams) are resolved so that
    they exist in Shortcut, but they are not sent: epic label_ids and the
    archived flag are rejected by the API.
    """

    def __init__(
        self,
        target: TargetWriter,
        *,
        team_id: str,
        epic_states: Sequence[WorkflowState],
        members: MemberDirectory,
        labels: LabelCache,
        update_existing: bool = False,
        relevant_team_names: Sequence[str] = DEFAULT_RELEVANT_TEAM_NAMES,
        ignored_team_name: str | None = DEFAULT_IGNORED_TEAM_NAME,
    ) -> None:
        self._target: TargetWriter = target
        self.team_id: str = team_id
        self.epic_states: list[WorkflowState] = list(epic_states)
        self.members: MemberDirectory = members
        self.labels: LabelCache = labels
        self.update_existing: bool = update_existing
        self.relevant_team_names: Sequence[str] = relevant_team_names
        self.ignored_team_name: str | None = ignored_team_name

    def label_names(self, project: LinearProject) -> list[str]:
        names = [label.name for label in project.labels]
        priority = priority_label(project.priority)
        if priority:
            names.append(priority)
        teams = filter_relevant_team_names(project.teams, self.relevant_team_names, self.ignored_team_name)
        names += [team_label(name) for name in teams]
        return names

    def build_payload(self, project: LinearProject, objective_id: int | None, epic_state_id: int) -> dict[str, Any]:
        owner_ids = self.members.owner_ids([project.lead, *project.members])
        return drop_none(
            {
                "name": project.name,
                "description": build_epic_description(
                    project,
                    relevant_team_names=self.relevant_team_names,
                    ignored_team_name=self.ignored_team_name,
                ),
                "epic_state_id": epic_state_id,
                "group_id": self.team_id,
                "planned_start_date": normalize_date(project.start_date),
                "deadline": normalize_date(project.target_date),
                "owner_ids": owner_ids or None,
                "objective_ids": [objective_id] if objective_id else None,
            }
        )

    def upsert(
        self,
        project: LinearProject,
        objective_id: int | None = None,
        existing_id: int | None = None,
    ) -> UpsertResult:
        """Reconcile one project with its epic.

        Args:
            project: The Linear project
            objective_id: Shortcut objective of the project's first initiative, if migrated
            existing_id: Id of an epic with the same name, if one exists

        Returns:
            UpsertResult; "failed" when the state cannot be mapped or the API call fails
        """
        epic_state_id = resolve_epic_state(project, self.epic_states)
        if epic_state_id is None:
            msg = f'Could not map Linear state "{project.state_description}" to a Shortcut epic state ID'
            logger.error(f'{msg} (project "{project.name}")')
            return UpsertResult.failed(msg)

        label_ids = self.labels.resolve_all(self.label_names(project))
        logger.debug(f'Resolved {len(label_ids)} labels for project "{project.name}" (not sent on epics)')

        payload = self.build_payload(project, objective_id, epic_state_id)

        if existing_id is not None:
            if not self.update_existing:
                logger.info(f'Skipping update for existing epic "{project.name}" (ID: {existing_id})')
                return UpsertResult(existing_id, "unchanged")
            update = {key: payload[key] for key in UPDATE_FIELDS if key in payload}
            try:
                _ = self._target.update_epic(existing_id, update)
            except ApiError as e:
                logger.error(f'Failed to update epic "{project.name}" (ID: {existing_id}): {e}')  # noqa: TRY400
                return UpsertResult.failed(str(e))
            logger.info(f'Updated epic "{project.name}" (ID: {existing_id})')
            return UpsertResult(existing_id, "updated")

        try:
            epic = self._target.create_epic(payload)
        except ApiError as e:
            logger.error(f'Failed to create epic "{project.name}": {e}')  # noqa: TRY400
            return UpsertResult.failed(str(e))
        logger.info(f'Created epic "{project.name}" (ID: {epic.id})')
        return UpsertResult(epic.id, "created")
