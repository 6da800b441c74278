"""
Login lockout: after ``login_max_attempts`` failures for one ``ip:email``
identifier within ``login_lock_minutes``, further logins are refused for
``login_lock_minutes``.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from threading import Lock

from app.core.config import settings


class LoginAttemptTracker:
    """Process-local failure counter keyed by login identifier.

    Failure counts expire one window after the first failure, and every
    recorded failure sweeps expired identifiers, so the maps stay bounded
    by the identifiers seen in the last window.
    """

    def __init__(self, max_attempts: int, lock_minutes: int):
        self.max_attempts = max_attempts
        self.window = timedelta(minutes=lock_minutes)
        self._lock = Lock()
        # identifier -> (failure count, first failure in current window)
        self._failures: dict[str, tuple[int, datetime]] = {}
        self._locked_until: dict[str, datetime] = {}

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _prune(self, now: datetime) -> None:
        for identifier, until in list(self._locked_until.items()):
            if until <= now:
                del self._locked_until[identifier]
                self._failures.pop(identifier, None)
        for identifier, (_, started) in list(self._failures.items()):
            if identifier not in self._locked_until and started + self.window <= now:
                del self._failures[identifier]

    def _remaining(self, identifier: str, now: datetime) -> int:
        until = self._locked_until[identifier]
        return int(max((until - now).total_seconds(), 0))

    def is_allowed(self, identifier: str) -> tuple[bool, int]:
        with self._lock:
            now = self._now()
            until = self._locked_until.get(identifier)
            if until is None or until <= now:
                return True, 0
            return False, self._remaining(identifier, now)

    def record_failure(self, identifier: str) -> tuple[bool, int]:
        """Returns (is_now_locked, seconds_until_unlock)."""
        with self._lock:
            now = self._now()
            self._prune(now)
            count, started = self._failures.get(identifier, (0, now))
            count += 1
            self._failures[identifier] = (count, started)
            if count < self.max_attempts:
                return False, 0
            self._locked_until[identifier] = now + self.window
            return True, self._remaining(identifier, now)

    def record_success(self, identifier: str) -> None:
        with self._lock:
            self._failures.pop(identifier, None)
            self._locked_until.pop(identifier, None)

    def __len__(self) -> int:
        return len(self._failures) + len(self._locked_until)


login_tracker = LoginAttemptTracker(settings.login_max_attempts, settings.login_lock_minutes)


def login_is_allowed(identifier: str) -> tuple[bool, int]:
    return login_tracker.is_allowed(identifier)


def register_failed_login(identifier: str) -> tuple[bool, int]:
    return login_tracker.record_failure(identifier)


def register_successful_login(identifier: str) -> None:
    login_tracker.record_success(identifier)
