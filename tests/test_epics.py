"""Tests for epic upserts."""

import pytest
from fakes import FakeShortcut

from linear_to_shortcut_migrator.epics import UPDATE_FIELDS, EpicUpserter
from linear_to_shortcut_migrator.labels import LabelCache
from linear_to_shortcut_migrator.members import MemberDirectory
from linear_to_shortcut_migrator.models import (
    LinearLabel,
    LinearProject,
    LinearStatus,
    LinearTeam,
    LinearUser,
    ShortcutMember,
    WorkflowState,
)

EPIC_STATES = [WorkflowState(101, "To Do", "unstarted"), WorkflowState(103, "Done", "done")]


def _upserter(target: FakeShortcut, *, update_existing: bool = False, states=EPIC_STATES) -> EpicUpserter:
    members = MemberDirectory([ShortcutMember("m1", "Ada", "ada@example.com")])
    return EpicUpserter(
        target,
        team_id="g1",
        epic_states=states,
        members=members,
        labels=LabelCache(target),
        update_existing=update_existing,
    )


def _project(**overrides) -> LinearProject:
    fields = {
        "id": "p1",
        "name": "Search",
        "description": "Better search",
        "status": LinearStatus("s", "Completed", "completed"),
        "start_date": "2025-01-01T00:00:00.000Z",
        "target_date": "Q2 2025",
        "priority": 2,
        "lead": LinearUser("u1", "Ada", "ada@example.com"),
        "labels": [LinearLabel("l1", "Search")],
        "teams": [LinearTeam("t1", "Education")],
    }
    fields.update(overrides)
    return LinearProject(**fields)


@pytest.mark.unit
class TestBuildPayload:
    def test_fields(self) -> None:
        payload = _upserter(FakeShortcut()).build_payload(_project(), objective_id=9, epic_state_id=103)

        assert payload["group_id"] == "g1"
        assert payload["epic_state_id"] == 103
        assert payload["planned_start_date"] == "2025-01-01"
        assert payload["deadline"] == "2025-06-30"
        assert payload["owner_ids"] == ["m1"]
        assert payload["objective_ids"] == [9]
        assert "label_ids" not in payload
        assert "archived" not in payload

    def test_unset_fields_are_left_out(self) -> None:
        project = _project(start_date=None, target_date="someday", lead=None)

        payload = _upserter(FakeShortcut()).build_payload(project, objective_id=None, epic_state_id=101)

        assert not {"planned_start_date", "deadline", "owner_ids", "objective_ids"} & payload.keys()

    def test_label_names(self) -> None:
        names = _upserter(FakeShortcut()).label_names(_project())
        assert names == ["Search", "Priority: High", "Team: Education"]


@pytest.mark.unit
class TestEpicUpserter:
    def test_creates_with_mapped_state(self) -> None:
        target = FakeShortcut()

        result = _upserter(target).upsert(_project(), objective_id=9)

        assert result.action == "created"
        assert target.epics[result.target_id]["epic_state_id"] == 103
        assert target.epics[result.target_id]["objective_ids"] == [9]

    def test_labels_are_created_but_not_sent(self) -> None:
        target = FakeShortcut()

        result = _upserter(target).upsert(_project())

        assert sorted(label["name"] for label in target.labels.values()) == [
            "Priority: High",
            "Search",
            "Team: Education",
        ]
        assert "label_ids" not in target.epics[result.target_id]

    def test_existing_unchanged_by_default(self) -> None:
        target = FakeShortcut()

        result = _upserter(target).upsert(_project(), existing_id=5)

        assert result == (5, "unchanged", None)
        assert target.updates == []

    def test_update_sends_only_updatable_fields(self) -> None:
        target = FakeShortcut()
        epic_id = target.add_epic("Search", 101)

        result = _upserter(target, update_existing=True).upsert(_project(), existing_id=epic_id)

        assert result.action == "updated"
        _, updated_id, payload = target.updates[0]
        assert updated_id == epic_id
        assert set(payload) <= set(UPDATE_FIELDS)
        assert payload["epic_state_id"] == 103

    def test_no_states_fails(self) -> None:
        target = FakeShortcut()

        result = _upserter(target, states=[]).upsert(_project())

        assert result.action == "failed"
        assert "Could not map Linear state" in (result.error or "")
        assert target.created == []

    def test_create_failure(self) -> None:
        target = FakeShortcut()
        target.fail_on.add("create_epic")

        assert _upserter(target).upsert(_project()).action == "failed"
