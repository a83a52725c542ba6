"""Resolution of Linear users to Shortcut members by email."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import LinearUser, ShortcutMember

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Per-run memory of messages already logged, to keep long runs readable."""

    logged: set[str] = field(default_factory=set)

    def log_once(self, key: str, level: int, message: str) -> None:
        if key in self.logged:
            return
        self.logged.add(key)
        logger.log(level, message)


class MemberDirectory:
    """Active Shortcut members, looked up by case-insensitive email."""

    def __init__(self, members: Sequence[ShortcutMember], context: RunContext | None = None) -> None:
        self._by_email: dict[str, ShortcutMember] = {
            m.email.lower(): m for m in members if m.email and not m.deactivated
        }
        self._context: RunContext = context or RunContext()

    def __len__(self) -> int:
        return len(self._by_email)

    def find_by_email(self, email: str | None) -> str | None:
        """Member id for ``email``, or None when no active member has it."""
        if not email:
            return None
        member = self._by_email.get(email.strip().lower())
        if member is None:
            self._context.log_once(
                f"member:{email.lower()}",
                logging.WARNING,
                f"Could not find active Shortcut member for Linear email: {email}",
            )
            return None
        return member.id

    def owner_ids(self, users: Iterable[LinearUser | None]) -> list[str]:
        """Member ids for the given users in order, unmatched dropped, no repeats."""
        ids: list[str] = []
        for user in users:
            if user is None:
                continue
            member_id = self.find_by_email(user.email)
            if member_id and member_id not in ids:
                ids.append(member_id)
        return ids
