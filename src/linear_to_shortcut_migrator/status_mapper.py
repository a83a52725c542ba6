"""Mapping of Linear statuses onto Shortcut workflow, epic and objective states.

Story states
------------
A Linear issue status is resolved to a Shortcut workflow state id through an
ordered chain of strategies; the first one that yields a state wins:

1. ``explicit_table``: the status is looked up in a mapping table and the
   mapped name is searched among the available states, ignoring decorative
   glyphs (emoji) on both sides. Ties are broken by state type hints
   ("released"/"done" -> done, "progress" -> started).
2. ``exact_name``: case-insensitive name equality, glyph-insensitive.
3. ``fuzzy_name``: substring match in either direction plus synonym hints.
4. ``category_inference``: the state type is guessed from keywords in the
   Linear status and the first state of that type is used.
5. ``default_state``: "Inbox", else the first unstarted state, else the
   first state.

Two tables exist because Shortcut workspaces commonly run a separate Design
workflow next to the development one. Issues labelled "design" use
``WorkflowVariant.DESIGN``: the pool is restricted to the Design workflow and
the design table is used, so the story lands in the right swim-lane.

Epic states
-----------
Shortcut does not expose the epic workflow, so the usable epic state ids are
inferred from the epics that already exist (``infer_epic_states``). Projects
are then mapped by status *type* only. Canceled projects map to a done state:
Shortcut has no discarded state, only an orthogonal archived flag.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Final

from .exceptions import EpicStateInferenceError
from .models import WorkflowState

if TYPE_CHECKING:
    from .models import LinearProject, ShortcutEpic, Workflow

logger: logging.Logger = logging.getLogger(__name__)


class WorkflowVariant(enum.Enum):
    STANDARD = "standard"
    DESIGN = "design"


# Linear issue status -> Shortcut workflow state name (development workflow)
STATUS_MAPPING: Final[dict[str, str]] = {
    "Backlog": "Parking lot 🚗",
    "Refinement": "Refinement 🔄",
    "Ready to be Prioritized": "Ready to be Prioritized 🔢",
    "Ready 🏁": "Ready 🏁",
    "In Progress 💪": "Implementation In Progress 💪",
    "In Review 🕵": "Review In Progress 🕵️‍♀️",
    "User Acceptance 🧑‍💻": "User Acceptance In Progress 🧑‍💻",
    "Done ✅": "Done ✅",
    "Canceled": "Parking lot 🚗",
    "Duplicate": "Done ✅",
    "Triage": "Inbox 📥",
}

# Linear issue status -> Shortcut workflow state name (Design workflow)
DESIGN_STATUS_MAPPING: Final[dict[str, str]] = {
    "Backlog": "Parking lot 🚗",
    "Refinement": "Ready for refinement ‼️",
    "Ready 🏁": "Next up ⏭️",
    "In Progress 💪": "In Progress 💪 Ongoing",
    "In Review 🕵": "Ready for review - Feedback 👏",
    "Done ✅": "Done ✅",
    "Canceled": "Parking lot 🚗",
    "Duplicate": "Done ✅",
    "Triage": "Parking lot 🚗",
}

# Legacy Linear project state -> Shortcut epic state category name
EPIC_STATUS_MAPPING: Final[dict[str, str]] = {
    "Backlog": "to do",
    "Later": "to do",
    "Next": "to do",
    "Now": "in progress",
    "Completed": "done",
    "Canceled": "done",
}

# Linear project status type -> Shortcut epic state type
EPIC_STATUS_TYPES: Final[dict[str, str]] = {
    "backlog": "unstarted",
    "planned": "unstarted",
    "unstarted": "unstarted",
    "started": "started",
    "paused": "started",
    "completed": "done",
    "canceled": "done",
}

_EPIC_CATEGORY_TYPES: Final[dict[str, str]] = {"to do": "unstarted", "in progress": "started", "done": "done"}

# Linear initiative status -> Shortcut objective state
OBJECTIVE_STATUS_MAPPING: Final[dict[str, str]] = {
    "Planned": "to do",
    "Active": "in progress",
    "Completed": "done",
}

DEFAULT_STATE_NAME: Final[str] = "Inbox"

# Emoji, pictographs, dingbats, arrows/technical symbols, plus the joiners
# and variation selectors that compose multi-codepoint emoji
_GLYPH_PATTERN: Final[re.Pattern[str]] = re.compile(
    "["
    "\U0001f000-\U0001faff"
    "\u2300-\u23ff"
    "\u2600-\u27bf"
    "\u2b00-\u2bff"
    "\u203c\u2049\u20e3"
    "\u200d\ufe0e\ufe0f"
    "]+"
)

_SYNONYM_HINTS: Final[tuple[tuple[str, str], ...]] = (
    ("progress", "progress"),
    ("review", "review"),
    ("ready", "ready"),
    ("released", "released"),
    ("done", "done"),
    ("complete", "done"),
)

_CATEGORY_KEYWORDS: Final[tuple[tuple[str, tuple[str, ...]], ...]] = (
    ("done", ("done", "complete", "closed", "cancel")),
    ("started", ("progress", "started", "review", "implementation", "acceptance")),
    ("unstarted", ("backlog", "todo", "inbox", "ready", "spec", "refinement")),
)


def strip_glyphs(text: str) -> str:
    """Remove decorative emoji from a state name and normalise whitespace."""
    return " ".join(_GLYPH_PATTERN.sub(" ", text).split())


def _clean(text: str) -> str:
    return strip_glyphs(text).lower()


def _prefer_type(candidates: Sequence[WorkflowState], hint: str) -> WorkflowState:
    """Pick among states with the same name using the type the mapped name suggests."""
    wanted: str | None = None
    if any(word in hint for word in ("released", "done", "complete")):
        wanted = "done"
    elif any(word in hint for word in ("progress", "started")):
        wanted = "started"
    if wanted:
        for state in candidates:
            if state.type == wanted:
                return state
    return candidates[0]


def _lookup_table(label: str, table: Mapping[str, str]) -> str | None:
    if label in table:
        return table[label]
    cleaned = _clean(label)
    for key, value in table.items():
        if _clean(key) == cleaned:
            return value
    return None


# --- Strategies ---------------------------------------------------------------

StateStrategy = Callable[[str, Sequence[WorkflowState], Mapping[str, str]], "int | None"]


def explicit_table(label: str, pool: Sequence[WorkflowState], table: Mapping[str, str]) -> int | None:
    mapped = _lookup_table(label, table)
    if not mapped:
        return None
    for state in pool:
        if state.name == mapped:
            return state.id
    mapped_clean = _clean(mapped)
    candidates = [state for state in pool if _clean(state.name) == mapped_clean]
    if candidates:
        return _prefer_type(candidates, mapped_clean).id
    return None


def exact_name(label: str, pool: Sequence[WorkflowState], table: Mapping[str, str]) -> int | None:  # noqa: ARG001
    lowered = label.lower()
    for state in pool:
        if state.name.lower() == lowered:
            return state.id
    cleaned = _clean(label)
    if not cleaned:
        return None
    for state in pool:
        if _clean(state.name) == cleaned:
            return state.id
    return None


def fuzzy_name(label: str, pool: Sequence[WorkflowState], table: Mapping[str, str]) -> int | None:  # noqa: ARG001
    lowered = label.lower()
    cleaned = _clean(label)
    for state in pool:
        state_lower = state.name.lower()
        state_clean = _clean(state.name)
        if lowered and state_lower and (lowered in state_lower or state_lower in lowered):
            return state.id
        if cleaned and state_clean and (cleaned in state_clean or state_clean in cleaned):
            return state.id
        if any(source in cleaned and target in state_clean for source, target in _SYNONYM_HINTS):
            return state.id
    return None


def infer_category(label: str) -> str | None:
    """Guess the Shortcut state type a Linear status belongs to."""
    lowered = label.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return None


def category_inference(
    label: str, pool: Sequence[WorkflowState], table: Mapping[str, str]  # noqa: ARG001
) -> int | None:
    category = infer_category(label)
    if category is None:
        return None
    for state in pool:
        if state.type == category:
            return state.id
    return None


def default_state(label: str, pool: Sequence[WorkflowState], table: Mapping[str, str]) -> int | None:  # noqa: ARG001
    if not pool:
        return None
    for state in pool:
        if _clean(state.name) == DEFAULT_STATE_NAME.lower():
            return state.id
    for state in pool:
        if state.type == "unstarted":
            return state.id
    return pool[0].id


STRATEGIES: Final[tuple[StateStrategy, ...]] = (
    explicit_table,
    exact_name,
    fuzzy_name,
    category_inference,
    default_state,
)


def select_state_pool(workflows: Sequence[Workflow], variant: WorkflowVariant) -> list[WorkflowState]:
    """States a story may be placed in for the given workflow variant."""
    if variant is WorkflowVariant.DESIGN:
        design = next((w for w in workflows if "design" in w.name.lower()), None)
        if design and design.states:
            return list(design.states)
        logger.warning(
            "Design ticket detected but no Design workflow found in Shortcut "
            f"(workflows: {', '.join(w.name for w in workflows)}). Using default workflow states."
        )
    return [state for workflow in workflows for state in workflow.states]


def resolve_story_state(
    label: str,
    workflows: Sequence[Workflow],
    variant: WorkflowVariant = WorkflowVariant.STANDARD,
    *,
    strategies: Sequence[StateStrategy] = STRATEGIES,
) -> int | None:
    """Resolve a Linear issue status to a Shortcut workflow state id.

    Args:
        label: Linear status name, e.g. "In Progress 💪"
        workflows: Shortcut workflows available to the team
        variant: Which mapping table and state pool to use
        strategies: Ordered fallback chain; defaults to ``STRATEGIES``

    Returns:
        The state id, or None when no states are available at all
    """
    pool = select_state_pool(workflows, variant)
    if not pool:
        return None
    table = DESIGN_STATUS_MAPPING if variant is WorkflowVariant.DESIGN else STATUS_MAPPING

    for strategy in strategies:
        state_id = strategy(label, pool, table)
        if state_id is None:
            continue
        if strategy is default_state:
            fallback = next(s for s in pool if s.id == state_id)
            logger.warning(
                f'Could not map Linear status "{label}" to a Shortcut state. Using fallback: "{fallback.name}"'
            )
        else:
            logger.debug(f'Status "{label}" resolved by {strategy.__name__} to state {state_id}')
        return state_id
    return None


def state_name(state_id: int | None, workflows: Sequence[Workflow]) -> str:
    """Name of a workflow state id across all workflows, "unknown" if absent."""
    for workflow in workflows:
        for state in workflow.states:
            if state.id == state_id:
                return state.name
    return "unknown"


# --- Epics ----------------------------------------------------------------------


def infer_epic_state_type(state: str | None) -> str:
    """Guess an epic state's type from its name.

    Names without a recognisable keyword default to "unstarted"; a custom
    done-like name such as "Shipped" is therefore misclassified.
    """
    lowered = (state or "").lower()
    if any(word in lowered for word in ("done", "completed", "finish")):
        return "done"
    if any(word in lowered for word in ("progress", "started", "active")):
        return "started"
    return "unstarted"


def infer_epic_states(existing_epics: Sequence[ShortcutEpic]) -> list[WorkflowState]:
    """Derive the usable epic states from the state ids on existing epics.

    Raises:
        EpicStateInferenceError: When there are no epics, or none carries a state id
    """
    if not existing_epics:
        msg = (
            "No existing epics found in Shortcut - cannot infer epic workflow states. "
            "At least one epic must exist to determine valid state ids."
        )
        raise EpicStateInferenceError(msg)

    states: dict[int, WorkflowState] = {}
    for epic in existing_epics:
        if epic.epic_state_id is None or epic.epic_state_id in states:
            continue
        name = epic.state or "Unknown"
        states[epic.epic_state_id] = WorkflowState(id=epic.epic_state_id, name=name, type=infer_epic_state_type(name))

    if not states:
        msg = f"Could not infer any epic states from {len(existing_epics)} existing epics"
        raise EpicStateInferenceError(msg)

    for state in states.values():
        logger.debug(f"Inferred epic state: {state.name} ({state.type}) [ID: {state.id}]")
    return list(states.values())


def epic_state_type_for(project: LinearProject) -> str | None:
    """The Shortcut epic state type a Linear project should land in."""
    if project.status:
        return EPIC_STATUS_TYPES.get(project.status.type.lower())
    category = EPIC_STATUS_MAPPING.get(project.state) or EPIC_STATUS_MAPPING.get(project.state.capitalize())
    return _EPIC_CATEGORY_TYPES.get(category) if category else None


def resolve_epic_state(project: LinearProject, epic_states: Sequence[WorkflowState]) -> int | None:
    """Map a Linear project's status onto one of the inferred epic state ids."""
    if not epic_states:
        logger.warning("No epic workflow states available")
        return None

    wanted_type = epic_state_type_for(project)
    if wanted_type:
        for state in epic_states:
            if state.type == wanted_type:
                logger.debug(
                    f'Mapping project "{project.name}" ({project.state_description}) -> '
                    f'epic state "{state.name}" (ID: {state.id}, type: {state.type})'
                )
                return state.id

    logger.warning(
        f'Could not map project status "{project.state_description or "none"}" for project '
        f'"{project.name}". Using first available epic state.'
    )
    return epic_states[0].id


# --- Objectives ---------------------------------------------------------------


def resolve_objective_state(status: str | None) -> str:
    """Map a Linear initiative status onto a Shortcut objective state."""
    if not status:
        return "to do"
    mapped = OBJECTIVE_STATUS_MAPPING.get(status)
    if mapped:
        return mapped
    lowered = status.lower()
    if any(word in lowered for word in ("active", "started", "in progress")):
        return "in progress"
    if any(word in lowered for word in ("completed", "done")):
        return "done"
    return "to do"
