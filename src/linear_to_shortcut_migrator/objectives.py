"""Upsert Linear initiatives as Shortcut objectives."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .description_builder import build_objective_description
from .exceptions import ApiError
from .models import UpsertResult
from .status_mapper import resolve_objective_state
from .utils import drop_none

if TYPE_CHECKING:
    from .models import LinearInitiative
    from .protocols import TargetWriter

logger: logging.Logger = logging.getLogger(__name__)


def build_objective_payload(initiative: LinearInitiative) -> dict[str, Any]:
    # Shortcut rejects target_date on objectives; the date lives in the description
    return drop_none(
        {
            "name": initiative.name,
            "description": build_objective_description(initiative),
            "state": resolve_objective_state(initiative.status),
        }
    )


class ObjectiveUpserter:
    def __init__(self, target: TargetWriter, *, update_existing: bool = False) -> None:
        self._target: TargetWriter = target
        self.update_existing: bool = update_existing

    def upsert(self, initiative: LinearInitiative, existing_id: int | None = None) -> UpsertResult:
        """Create the objective, or update/keep the existing one with ``existing_id``."""
        payload = build_objective_payload(initiative)

        if existing_id is not None:
            if not self.update_existing:
                logger.info(f'Skipping update for existing objective "{initiative.name}" (ID: {existing_id})')
                return UpsertResult(existing_id, "unchanged")
            try:
                _ = self._target.update_objective(existing_id, payload)
            except ApiError as e:
                logger.error(f'Failed to update objective "{initiative.name}" (ID: {existing_id}): {e}')  # noqa: TRY400
                return UpsertResult.failed(str(e))
            logger.info(f'Updated objective "{initiative.name}" (ID: {existing_id})')
            return UpsertResult(existing_id, "updated")

        try:
            objective = self._target.create_objective(payload)
        except ApiError as e:
            logger.error(f'Failed to create objective "{initiative.name}": {e}')  # noqa: TRY400
            return UpsertResult.failed(str(e))
        logger.info(f'Created objective "{initiative.name}" (ID: {objective.id}, state: {payload["state"]})')
        return UpsertResult(objective.id, "created")
