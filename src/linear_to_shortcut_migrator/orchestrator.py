"""Migration orchestrator that reconciles Linear with Shortcut.

The Migrator class is the central coordinator for migration. It:
1. Pairs Linear teams with Shortcut teams
2. Walks the hierarchy top-down per team (objectives, epics, stories)
3. Keeps the Linear id -> Shortcut id maps for the run
4. Collects statistics and the run summary

Migration Flow
--------------
Teams are migrated one after another; within a team everything is
sequential, with a fixed delay after each story.

Phase 1: Teams
    - Discover team pairs by name (configured id pairs as fallback)
    - Test mode keeps only the Education/Foundation teams
    - The Shortcut ids of all migrated teams form the duplicate-search scope

Phase 2: Team prerequisites
    - Workflows and members (failure aborts the team)
    - Iterations (failure only disables cycle -> iteration mapping)

Phase 3: Objectives
    - Initiatives are matched to objectives by exact name, created or updated

Phase 4: Epics
    - Existing epics are fetched; their state ids are the only usable epic
      states (Shortcut does not expose the epic workflow). No inferable
      state aborts the rest of the team.
    - Projects are matched to epics by exact name, created or updated

Phase 5: Stories
    - Parent issues first, then child issues, so that each child can be
      linked ("relates to") to the story of its parent
    - Issues already migrated (found by the DuplicateLocator in any team of
      the run) are reconciled instead of recreated

Idempotence
-----------
Nothing is persisted between runs. A rerun finds objectives and epics by
name and stories through the "Migrated Ticket <identifier>" marker, so with
``update_existing`` off it creates nothing new.

Error Handling
--------------
- Transport failures on prerequisites: the team is aborted and recorded
- Entity failures: counted and logged, the loop continues
- Best-effort side-writes (links, labels, retroactive fixes): warnings only
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from .dates import normalize_date
from .duplicates import DuplicateLocator, find_by_name
from .epics import EpicUpserter
from .exceptions import ApiError, EpicStateInferenceError
from .labels import LabelCache
from .members import MemberDirectory, RunContext
from .models import ShortcutEpic, ShortcutObjective, SummaryRecord, UpsertResult
from .objectives import ObjectiveUpserter
from .relationships import link_child_to_parent, split_hierarchy
from .shortcut_utils import entity_url, story_url
from .status_mapper import WorkflowVariant, infer_epic_states, resolve_story_state, state_name
from .stories import StoryUpserter, workflow_variant_for
from .teams import TeamNameTranslator, resolve_team_mappings

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .config import MigrationConfig
    from .models import LinearIssue, Workflow
    from .protocols import SourceReader, TargetWriter
    from .teams import TeamMapping

logger: logging.Logger = logging.getLogger(__name__)

TEST_MODE_TEAM_KEYWORDS: Final[tuple[str, ...]] = ("Education", "Foundation")


@dataclass
class MigrationStats:
    """Statistics collected during migration."""

    teams_migrated: int = 0
    objectives_created: int = 0
    objectives_updated: int = 0
    epics_created: int = 0
    epics_updated: int = 0
    stories_created: int = 0
    stories_skipped: int = 0
    stories_failed: int = 0
    links_created: int = 0
    created_stories: list[SummaryRecord] = field(default_factory=list)
    updated_epics: list[SummaryRecord] = field(default_factory=list)
    updated_objectives: list[SummaryRecord] = field(default_factory=list)
    updated_tickets: list[SummaryRecord] = field(default_factory=list)
    design_tickets: list[SummaryRecord] = field(default_factory=list)
    failed_teams: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class MigrationResult:
    """Result of a migration run."""

    success: bool
    stats: MigrationStats
    teams: list[TeamMapping] = field(default_factory=list)
    objective_map: dict[str, int] = field(default_factory=dict)  # initiative id -> objective id
    epic_map: dict[str, int] = field(default_factory=dict)  # project id -> epic id
    story_map: dict[str, int] = field(default_factory=dict)  # issue id -> story id


def select_test_teams(mappings: Sequence[TeamMapping]) -> list[TeamMapping]:
    """Teams migrated in test mode: Education/Foundation ones, else the first team."""
    selected = [
        m for m in mappings if any(k.lower() in m.shortcut_team_name.lower() for k in TEST_MODE_TEAM_KEYWORDS)
    ]
    return selected or list(mappings[:1])


def select_test_issues(issues: Sequence[LinearIssue], limit: int) -> list[LinearIssue]:
    """Test-mode subset, preferring parent issues with a project to exercise epic attachment."""
    with_project = [issue for issue in issues if issue.project]
    parents_with_project = [issue for issue in with_project if not issue.is_child]
    if parents_with_project:
        return parents_with_project[:limit]
    if with_project:
        return with_project[:limit]
    return list(issues[:limit])


class TeamAbortedError(Exception):
    """Internal signal that the current team cannot be migrated further."""


class Migrator:
    """Orchestrates migration from Linear to Shortcut.

    Usage:
        source = LinearClient(linear_token)
        target = ShortcutClient(shortcut_token)
        migrator = Migrator(source, target, config)
        result = migrator.migrate()

    The migrator keeps no state between runs - all state is returned in
    MigrationResult.
    """

    _source: SourceReader
    _target: TargetWriter

    def __init__(
        self,
        source: SourceReader,
        target: TargetWriter,
        config: MigrationConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the migrator.

        Args:
            source: Linear reader
            target: Shortcut writer
            config: Run configuration
            sleep: Called with ``config.request_delay`` after each story
        """
        self._source = source
        self._target = target
        self.config: MigrationConfig = config
        self._sleep: Callable[[float], None] = sleep
        self._context: RunContext = RunContext()
        self._labels: LabelCache = LabelCache(target)
        self._duplicates: DuplicateLocator = DuplicateLocator(target)

    def migrate(self) -> MigrationResult:
        """Execute the full migration.

        Returns:
            MigrationResult with statistics, id maps and the run summary
        """
        stats = MigrationStats()
        result = MigrationResult(success=False, stats=stats)
        # Run-scoped caches; nothing carries over from a previous run
        self._context = RunContext()
        self._labels = LabelCache(self._target)

        if self.config.test_mode:
            logger.info(f"TEST MODE ENABLED - migrating only {self.config.test_limit} issue(s) per team")
        logger.info("Starting Linear to Shortcut migration...")

        try:
            mappings = resolve_team_mappings(
                self._source,
                self._target,
                translator=TeamNameTranslator(self.config.team_name_mapping),
                teams_to_skip=self.config.teams_to_skip,
                fallback_pairs=self.config.fallback_team_pairs,
            )
        except ApiError as e:
            msg = f"Team discovery failed: {e}"
            logger.error(msg)  # noqa: TRY400
            stats.errors.append(msg)
            return result

        if not mappings:
            msg = "No team mappings found. Set LINEAR_TEAM_1_ID and SHORTCUT_TEAM_1_ID to map teams explicitly."
            logger.error(msg)
            stats.errors.append(msg)
            return result

        if self.config.test_mode:
            mappings = select_test_teams(mappings)
            logger.info(f"TEST MODE: migrating teams {', '.join(m.shortcut_team_name for m in mappings)}")

        result.teams = list(mappings)
        scope = list(dict.fromkeys(m.shortcut_team_id for m in mappings))

        for index, mapping in enumerate(mappings, 1):
            logger.info(
                f'[{index}/{len(mappings)}] Migrating Linear "{mapping.linear_team_name}" -> '
                f'Shortcut "{mapping.shortcut_team_name}"'
            )
            try:
                self._migrate_team(mapping, scope, result)
            except TeamAbortedError as e:
                msg = f"{mapping.linear_team_name}: {e}"
                logger.error(f"Migration aborted for team {msg}")  # noqa: TRY400
                stats.failed_teams.append(mapping.linear_team_name)
                stats.errors.append(msg)
                continue
            stats.teams_migrated += 1

        result.success = not stats.failed_teams
        logger.info(
            f"Migration complete! Created: {stats.stories_created}, "
            f"Skipped (duplicates): {stats.stories_skipped}, Errors: {stats.stories_failed}"
        )
        return result

    # --- Per team --------------------------------------------------------------

    def _migrate_team(self, mapping: TeamMapping, scope: list[str], result: MigrationResult) -> None:
        team_id = mapping.shortcut_team_id
        try:
            workflows = self._target.get_workflows(team_id)
        except ApiError as e:
            msg = f"Failed to fetch Shortcut workflows: {e}"
            raise TeamAbortedError(msg) from e
        for workflow in workflows:
            logger.debug(
                f"Workflow {workflow.name}: " + ", ".join(f"{s.name} ({s.type}) [ID: {s.id}]" for s in workflow.states)
            )

        try:
            members = MemberDirectory(self._target.get_members(), self._context)
        except ApiError as e:
            msg = f"Failed to fetch Shortcut members: {e}"
            raise TeamAbortedError(msg) from e

        try:
            iterations = self._target.get_iterations(team_id)
        except ApiError as e:
            logger.warning(f"Could not fetch Shortcut iterations, cycles will not be mapped: {e}")
            iterations = []
        cycle_to_iteration = {it.number: it.id for it in iterations if it.number is not None}

        if not self.config.skip_epic_objective_creation:
            self._migrate_objectives(result)

        try:
            existing_epics = self._target.get_epics(team_id)
        except ApiError as e:
            logger.warning(f"Could not fetch existing Shortcut epics: {e}")
            existing_epics = []
        try:
            epic_states = infer_epic_states(existing_epics)
        except EpicStateInferenceError as e:
            raise TeamAbortedError(str(e)) from e

        epics = EpicUpserter(
            self._target,
            team_id=team_id,
            epic_states=epic_states,
            members=members,
            labels=self._labels,
            update_existing=self.config.update_existing,
            relevant_team_names=self.config.relevant_team_names,
            ignored_team_name=self.config.ignored_team_name,
        )
        self._migrate_epics(mapping, epics, existing_epics, result)

        try:
            issues = self._source.get_issues(mapping.linear_team_id)
        except ApiError as e:
            msg = f"Failed to fetch Linear issues: {e}"
            raise TeamAbortedError(msg) from e

        stories = StoryUpserter(
            self._target,
            team_id=team_id,
            team_name=mapping.shortcut_team_name,
            workflows=workflows,
            members=members,
            labels=self._labels,
            duplicates=self._duplicates,
            scope_team_ids=scope,
        )
        self._migrate_stories(issues, stories, workflows, cycle_to_iteration, result)

    def _migrate_objectives(self, result: MigrationResult) -> None:
        stats = result.stats
        try:
            initiatives = self._source.get_initiatives()
            existing = self._target.get_objectives()
        except ApiError as e:
            logger.warning(f"Could not fetch initiatives/objectives, skipping objectives: {e}")
            return
        logger.info(f"Found {len(initiatives)} initiatives in Linear, {len(existing)} objectives in Shortcut")

        upserter = ObjectiveUpserter(self._target, update_existing=self.config.update_existing)
        for initiative in initiatives:
            if initiative.id in result.objective_map:
                continue
            match = find_by_name(initiative.name, existing)
            outcome = upserter.upsert(initiative, match.id if match else None)
            if not outcome.ok or outcome.target_id is None:
                stats.errors.append(f'Objective "{initiative.name}": {outcome.error}')
                continue

            result.objective_map[initiative.id] = outcome.target_id
            if outcome.action == "created":
                stats.objectives_created += 1
                # Later teams and same-named initiatives must find it by name
                existing.append(ShortcutObjective(id=outcome.target_id, name=initiative.name))
            elif outcome.action == "updated":
                stats.objectives_updated += 1
                stats.updated_objectives.append(
                    SummaryRecord(
                        outcome.target_id,
                        initiative.name,
                        entity_url("objective", outcome.target_id, self.config.workspace_slug),
                        details=_details(target_date=normalize_date(initiative.target_date)),
                    )
                )

    def _migrate_epics(
        self,
        mapping: TeamMapping,
        upserter: EpicUpserter,
        existing_epics: list[ShortcutEpic],
        result: MigrationResult,
    ) -> None:
        stats = result.stats
        try:
            projects = self._source.get_projects(mapping.linear_team_id)
        except ApiError as e:
            logger.warning(f"Could not fetch Linear projects, stories will have no epic: {e}")
            return

        if self.config.skip_epic_objective_creation:
            # Attach stories to epics that already exist, without writing any
            for project in projects:
                match = find_by_name(project.name, existing_epics)
                if match:
                    result.epic_map[project.id] = match.id
            logger.info("Skipping epic and objective creation (SKIP_EPIC_OBJECTIVE_CREATION)")
            return

        known = list(existing_epics)
        for project in projects:
            if project.id in result.epic_map:
                continue
            objective_id = result.objective_map.get(project.initiatives[0].id) if project.initiatives else None
            match = find_by_name(project.name, known)
            outcome: UpsertResult = upserter.upsert(project, objective_id, match.id if match else None)
            if not outcome.ok or outcome.target_id is None:
                stats.errors.append(f'Epic "{project.name}": {outcome.error}')
                continue

            result.epic_map[project.id] = outcome.target_id
            if outcome.action == "created":
                stats.epics_created += 1
                known.append(ShortcutEpic(id=outcome.target_id, name=project.name))
            elif outcome.action == "updated":
                stats.epics_updated += 1
                stats.updated_epics.append(
                    SummaryRecord(
                        outcome.target_id,
                        project.name,
                        entity_url("epic", outcome.target_id, self.config.workspace_slug),
                        details=_details(
                            start_date=normalize_date(project.start_date),
                            deadline=normalize_date(project.target_date),
                        ),
                    )
                )

    def _migrate_stories(
        self,
        issues: list[LinearIssue],
        upserter: StoryUpserter,
        workflows: Sequence[Workflow],
        cycle_to_iteration: dict[int, int],
        result: MigrationResult,
    ) -> None:
        to_process = issues
        if self.config.test_mode:
            to_process = select_test_issues(issues, self.config.test_limit)
            logger.info(f"TEST MODE: processing only {len(to_process)} issue(s)")

        for status in dict.fromkeys(issue.state.name for issue in issues):
            state_id = resolve_story_state(status, workflows)
            self._context.log_once(
                f"status:{status}", logging.INFO, f'Mapping: "{status}" -> "{state_name(state_id, workflows)}"'
            )

        hierarchy = split_hierarchy(to_process, issues)
        if hierarchy.children:
            logger.info(f"Found {len(hierarchy.children)} child issue(s) - will be created as separate stories")

        for issue in hierarchy.parents:
            _ = self._migrate_story(issue, upserter, cycle_to_iteration, result, is_parent=True)

        for child in hierarchy.children:
            outcome = self._migrate_story(child, upserter, cycle_to_iteration, result, is_parent=False)
            # Only new stories get a link; an existing one was linked when it was created
            if outcome.action != "created" or outcome.target_id is None:
                continue
            story_id = outcome.target_id
            parent_story_id = result.story_map.get(child.parent_id or "")
            if parent_story_id is None:
                logger.info(f"Parent of child issue {child.identifier} was not migrated in this run, no link added")
                continue
            if link_child_to_parent(
                self._target, story_id, parent_story_id, hierarchy.parent_identifiers.get(child.parent_id or "")
            ):
                result.stats.links_created += 1

    def _migrate_story(
        self,
        issue: LinearIssue,
        upserter: StoryUpserter,
        cycle_to_iteration: dict[int, int],
        result: MigrationResult,
        *,
        is_parent: bool,
    ) -> UpsertResult:
        stats = result.stats
        known_id = result.story_map.get(issue.id)
        if known_id is not None:
            logger.debug(f"Issue {issue.identifier} already handled in this run as story {known_id}")
            return UpsertResult(known_id, "duplicate")

        workspace = self.config.workspace_slug
        epic_id = result.epic_map.get(issue.project.id) if issue.project else None
        if issue.project and epic_id is None:
            logger.warning(
                f'Issue {issue.identifier} has project "{issue.project.name}" (ID: {issue.project.id}) '
                "but epic not found in map"
            )
        iteration_id = cycle_to_iteration.get(issue.cycle.number) if issue.cycle else None
        design = workflow_variant_for(issue) is WorkflowVariant.DESIGN

        outcome = upserter.upsert(issue, epic_id, iteration_id)
        try:
            if not outcome.ok or outcome.target_id is None:
                stats.stories_failed += 1
                stats.errors.append(f"Issue {issue.identifier}: {outcome.error}")
                return outcome

            story_id = outcome.target_id
            result.story_map[issue.id] = story_id

            if outcome.action == "duplicate":
                stats.stories_skipped += 1
                fixed = upserter.reconcile(story_id, issue, epic_id, full=is_parent)
                url = story_url(fixed.story, workspace) if fixed.story else entity_url("story", story_id, workspace)
                name = fixed.story.name if fixed.story else "Unknown"
                if fixed.changes:
                    stats.updated_tickets.append(
                        SummaryRecord(story_id, name, url, issue.identifier, {"updated": ", ".join(fixed.changes)})
                    )
                if fixed.moved_state and design:
                    stats.design_tickets.append(
                        SummaryRecord(story_id, name, url, issue.identifier, {"action": "moved_to_design"})
                    )
                return outcome

            stats.stories_created += 1
            url = entity_url("story", story_id, workspace)
            stats.created_stories.append(SummaryRecord(story_id, issue.title, url, issue.identifier))
            if design:
                stats.design_tickets.append(
                    SummaryRecord(story_id, issue.title, url, issue.identifier, {"action": "created_in_design"})
                )
            if stats.stories_created % 10 == 0:
                logger.info(f"Migrated {stats.stories_created} new issues...")
            return outcome
        finally:
            if self.config.request_delay:
                self._sleep(self.config.request_delay)


def _details(**values: str | None) -> dict[str, str]:
    return {key: value for key, value in values.items() if value}
