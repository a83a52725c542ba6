"""Tests for objective upserts."""

import pytest
from fakes import FakeShortcut

from linear_to_shortcut_migrator.models import LinearInitiative
from linear_to_shortcut_migrator.objectives import ObjectiveUpserter, build_objective_payload

INITIATIVE = LinearInitiative("i1", "Grow", description="Grow usage", status="Active", target_date="Q4 2025")


@pytest.mark.unit
class TestBuildObjectivePayload:
    def test_fields(self) -> None:
        payload = build_objective_payload(INITIATIVE)

        assert payload["name"] == "Grow"
        assert payload["state"] == "in progress"
        assert "Target Date: 2025-12-31" in payload["description"]

    def test_target_date_not_sent(self) -> None:
        assert "target_date" not in build_objective_payload(INITIATIVE)


@pytest.mark.unit
class TestObjectiveUpserter:
    def test_creates(self) -> None:
        target = FakeShortcut()

        result = ObjectiveUpserter(target).upsert(INITIATIVE)

        assert result.action == "created"
        assert target.objectives[result.target_id]["state"] == "in progress"

    def test_existing_left_alone_by_default(self) -> None:
        target = FakeShortcut()

        result = ObjectiveUpserter(target).upsert(INITIATIVE, existing_id=42)

        assert result == (42, "unchanged", None)
        assert target.updates == []

    def test_existing_updated_when_enabled(self) -> None:
        target = FakeShortcut()
        existing = target.create_objective({"name": "Grow", "state": "to do"})

        result = ObjectiveUpserter(target, update_existing=True).upsert(INITIATIVE, existing_id=existing.id)

        assert result.action == "updated"
        assert target.objectives[existing.id]["state"] == "in progress"

    def test_create_failure(self) -> None:
        target = FakeShortcut()
        target.fail_on.add("create_objective")

        result = ObjectiveUpserter(target).upsert(INITIATIVE)

        assert not result.ok
        assert result.target_id is None
        assert "create_objective failed" in (result.error or "")

    def test_update_failure(self) -> None:
        target = FakeShortcut()
        target.fail_on.add("update_objective")

        result = ObjectiveUpserter(target, update_existing=True).upsert(INITIATIVE, existing_id=42)

        assert result.action == "failed"
