"""
Notification and audit writes that run after the primary commit.

A failure here never undoes the claim/status change that triggered it; it is
retried a few times and then logged.
"""
import logging
from typing import Any, Callable

from sqlmodel import Session

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


class SideEffects:
    def __init__(self, session_factory: SessionFactory, max_attempts: int = 3):
        self.session_factory = session_factory
        self.max_attempts = max(1, max_attempts)
        self._pending: list[tuple[str, Callable[..., Any], tuple, dict]] = []

    def __len__(self):
        return len(self._pending)

    def defer(self, label: str, fn: Callable[..., Any], *args, **kwargs):
        """Queue ``fn(session, *args, **kwargs)``."""
        self._pending.append((label, fn, args, kwargs))

    def discard(self):
        self._pending.clear()

    def run(self) -> int:
        """Run queued effects, each in its own session. Returns how many succeeded."""
        pending, self._pending = self._pending, []
        succeeded = 0

        for label, fn, args, kwargs in pending:
            if self._run_one(label, fn, args, kwargs):
                succeeded += 1

        return succeeded

    def _run_one(self, label, fn, args, kwargs) -> bool:
        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.session_factory() as session:
                    fn(session, *args, **kwargs)
                    session.commit()
                return True
            except Exception:
                if attempt < self.max_attempts:
                    logger.warning("Side effect %s failed (attempt %d/%d), retrying", label, attempt, self.max_attempts)
                else:
                    logger.exception("Side effect %s dropped after %d attempts", label, self.max_attempts)

        return False
