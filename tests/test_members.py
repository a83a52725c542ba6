"""Tests for member lookup by email."""

import logging

import pytest

from linear_to_shortcut_migrator.members import MemberDirectory, RunContext
from linear_to_shortcut_migrator.models import LinearUser, ShortcutMember

MEMBERS = [
    ShortcutMember("m1", "Ada", "Ada@Example.com"),
    ShortcutMember("m2", "Bob", "bob@example.com", deactivated=True),
    ShortcutMember("m3", "Cy", None),
    ShortcutMember("m4", "Dee", "dee@example.com"),
]


@pytest.mark.unit
class TestMemberDirectory:
    def test_only_active_members_with_email(self) -> None:
        assert len(MemberDirectory(MEMBERS)) == 2

    def test_case_insensitive_lookup(self) -> None:
        assert MemberDirectory(MEMBERS).find_by_email(" ada@example.COM ") == "m1"

    def test_deactivated_member_not_found(self) -> None:
        assert MemberDirectory(MEMBERS).find_by_email("bob@example.com") is None

    def test_missing_email(self) -> None:
        assert MemberDirectory(MEMBERS).find_by_email(None) is None

    def test_miss_logged_once_per_run(self, caplog: pytest.LogCaptureFixture) -> None:
        directory = MemberDirectory(MEMBERS, RunContext())

        with caplog.at_level(logging.WARNING):
            _ = directory.find_by_email("nobody@example.com")
            _ = directory.find_by_email("Nobody@example.com")

        assert caplog.text.count("Could not find active Shortcut member") == 1

    def test_owner_ids_dedupes_and_drops_unmatched(self) -> None:
        users = [
            LinearUser("u1", "Ada", "ada@example.com"),
            None,
            LinearUser("u2", "Nobody", "nobody@example.com"),
            LinearUser("u3", "Dee", "dee@example.com"),
            LinearUser("u1", "Ada", "ada@example.com"),
        ]

        assert MemberDirectory(MEMBERS).owner_ids(users) == ["m1", "m4"]


@pytest.mark.unit
class TestRunContext:
    def test_log_once(self, caplog: pytest.LogCaptureFixture) -> None:
        context = RunContext()

        with caplog.at_level(logging.INFO):
            context.log_once("k", logging.INFO, "hello")
            context.log_once("k", logging.INFO, "hello")

        assert caplog.text.count("hello") == 1
        assert context.logged == {"k"}
