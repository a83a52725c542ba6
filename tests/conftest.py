"""
Pytest configuration and fixtures.

Integration tests run whole migrations against the in-memory Linear and
Shortcut fakes and fail when the migrator logs a WARNING or above: a clean
run against consistent data must not warn. Unit tests may log freely.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
from typing_extensions import override

if TYPE_CHECKING:
    from collections.abc import Generator

# Test node id -> WARNING+ records logged while that integration test ran
_logged_warnings: dict[str, list[logging.LogRecord]] = {}


class WarningCollector(logging.Handler):
    """Collects WARNING and above records for one integration test."""

    test_nodeid: str

    def __init__(self, test_nodeid: str) -> None:
        super().__init__(level=logging.WARNING)
        self.test_nodeid = test_nodeid

    @override
    def emit(self, record: logging.LogRecord) -> None:
        _logged_warnings.setdefault(self.test_nodeid, []).append(record)


@pytest.fixture(autouse=True)
def collect_warnings_in_integration_tests(request: pytest.FixtureRequest) -> Generator[None]:
    """Attach a WarningCollector to the root logger while an integration test runs."""
    if request.node.get_closest_marker("integration") is None:
        yield
        return

    test_nodeid = request.node.nodeid
    _logged_warnings[test_nodeid] = []
    handler = WarningCollector(test_nodeid)
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    try:
        yield
    finally:
        root_logger.removeHandler(handler)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]) -> Generator[None]:  # type: ignore[misc]
    """Turn a passed integration test into a failure when warnings were logged."""
    outcome = yield
    report = outcome.get_result()

    if call.when != "call":
        return

    records = _logged_warnings.pop(item.nodeid, [])
    if records and report.outcome == "passed":
        lines = [f"  - {r.levelname}: {r.getMessage()} (in {r.name}:{r.lineno})" for r in records]
        report.outcome = "failed"
        report.longrepr = f"Integration test logged {len(records)} warning(s):\n" + "\n".join(lines)
