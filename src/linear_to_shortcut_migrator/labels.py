"""
Label resolution for Linear to Shortcut.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from .exceptions import ApiError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import ShortcutLabel
    from .protocols import TargetWriter

logger: logging.Logger = logging.getLogger(__name__)

# Linear priority (0 = none) -> Shortcut label; Shortcut has no priority field
PRIORITY_LABELS: Final[dict[int, str]] = {
    1: "Priority: Urgent",
    2: "Priority: High",
    3: "Priority: Medium",
    4: "Priority: Low",
}


def priority_label(priority: int | None) -> str | None:
    """Label name for a Linear priority, or None for "no priority"."""
    if priority is None:
        return None
    return PRIORITY_LABELS.get(priority)


def team_label(team_name: str) -> str:
    return f"Team: {team_name}"


class LabelCache:
    """Find-or-create Shortcut labels, lazily and at most once per name.

    Matching with existing Shortcut labels is case-insensitive ("Bug" and
    "bug" resolve to the same label). The label list is fetched on first use
    and every resolved name is remembered for the rest of the run.
    """

    def __init__(self, target: TargetWriter) -> None:
        self._target: TargetWriter = target
        self._labels: dict[str, int] | None = None  # lowercase name -> id
        self.created: list[str] = []

    def _load(self) -> dict[str, int]:
        if self._labels is None:
            labels: list[ShortcutLabel] = self._target.get_labels()
            self._labels = {label.name.lower(): label.id for label in labels}
            logger.debug(f"Loaded {len(self._labels)} Shortcut labels")
        return self._labels

    def resolve(self, name: str) -> int | None:
        """Return the id of the label named ``name``, creating it when missing.

        Returns None (and logs a warning) when listing or creating fails;
        label resolution never fails the entity it is resolved for.
        """
        key = name.strip().lower()
        if not key:
            return None
        try:
            labels = self._load()
            existing = labels.get(key)
            if existing is not None:
                return existing
            label = self._target.create_label(name.strip())
        except ApiError as e:
            logger.warning(f"Could not find or create label {name!r}: {e}")
            return None

        labels[key] = label.id
        self.created.append(label.name)
        logger.info(f"Created label: {label.name} (ID: {label.id})")
        return label.id

    def resolve_all(self, names: Iterable[str]) -> list[int]:
        """Resolve several names, dropping failures and repeated ids."""
        ids: list[int] = []
        for name in names:
            label_id = self.resolve(name)
            if label_id is not None and label_id not in ids:
                ids.append(label_id)
        return ids
