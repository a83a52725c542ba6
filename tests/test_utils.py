"""
Tests for utility functions.
"""

import subprocess
from unittest.mock import patch

import pytest

from linear_to_shortcut_migrator.utils import (
    InvalidPassPathError,
    PassError,
    drop_none,
    get_pass_value,
    parse_bool,
)


@pytest.mark.unit
class TestDropNone:
    def test_keeps_falsy_values(self) -> None:
        assert drop_none({"a": None, "b": 0, "c": [], "d": ""}) == {"b": 0, "c": [], "d": ""}


@pytest.mark.unit
class TestParseBool:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("true", True), ("1", True), (" TRUE ", True), ("yes", False), (None, False)],
    )
    def test_values(self, value: str | None, expected: bool) -> None:
        assert parse_bool(value) is expected


@pytest.mark.unit
class TestGetPassValue:
    def test_invalid_path(self) -> None:
        with pytest.raises(ValueError, match="Invalid pass path"):
            _ = get_pass_value("../etc/passwd")

    def test_returns_stripped_value(self) -> None:
        completed = subprocess.CompletedProcess(["pass", "linear/token"], 0, stdout="secret\n", stderr="")
        with patch("linear_to_shortcut_migrator.utils.subprocess.run", return_value=completed) as run:
            assert get_pass_value("linear/token") == "secret"
        run.assert_called_once()

    def test_missing_entry(self) -> None:
        error = subprocess.CalledProcessError(1, ["pass"], stderr="Error: linear/x is not in the password store.")
        with (
            patch("linear_to_shortcut_migrator.utils.subprocess.run", side_effect=error),
            pytest.raises(InvalidPassPathError),
        ):
            _ = get_pass_value("linear/x")

    def test_pass_not_installed(self) -> None:
        with (
            patch("linear_to_shortcut_migrator.utils.subprocess.run", side_effect=FileNotFoundError("pass")),
            pytest.raises(PassError, match="not installed"),
        ):
            _ = get_pass_value("linear/token")
