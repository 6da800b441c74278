from datetime import timedelta

import pytest
from fastapi.exceptions import RequestValidationError

from app.core.auth_safety import LoginAttemptTracker
from app.core.exceptions import InvalidUpdate, ValidationError
from app.core.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    token_subject,
)
from app.main import _validation_error


def test_token_subject_checks_type():
    assert token_subject(create_access_token(42), ACCESS_TOKEN) == 42
    assert token_subject(create_refresh_token(42), REFRESH_TOKEN) == 42

    with pytest.raises(ValueError):
        token_subject(create_refresh_token(42), ACCESS_TOKEN)
    with pytest.raises(ValueError):
        token_subject(create_access_token(42), REFRESH_TOKEN)
    with pytest.raises(ValueError):
        token_subject("not-a-jwt", ACCESS_TOKEN)


def test_tracker_locks_after_max_attempts():
    tracker = LoginAttemptTracker(max_attempts=3, lock_minutes=15)

    assert tracker.record_failure("ip:a@example.com") == (False, 0)
    assert tracker.record_failure("ip:a@example.com") == (False, 0)
    locked, retry_after = tracker.record_failure("ip:a@example.com")
    assert locked
    assert retry_after > 0
    assert tracker.is_allowed("ip:a@example.com")[0] is False

    tracker.record_success("ip:a@example.com")
    assert tracker.is_allowed("ip:a@example.com") == (True, 0)


def test_tracker_forgets_stale_failures():
    tracker = LoginAttemptTracker(max_attempts=3, lock_minutes=15)
    start = tracker._now()
    tracker._now = lambda: start

    for i in range(50):
        tracker.record_failure(f"ip:user{i}@example.com")
    tracker.record_failure("ip:user0@example.com")
    assert len(tracker) == 50

    tracker._now = lambda: start + timedelta(minutes=16)
    assert tracker.record_failure("ip:user0@example.com") == (False, 0)
    assert len(tracker) == 1


def test_tracker_lock_expires():
    tracker = LoginAttemptTracker(max_attempts=2, lock_minutes=15)
    start = tracker._now()
    tracker._now = lambda: start
    tracker.record_failure("ip:b@example.com")
    tracker.record_failure("ip:b@example.com")
    assert tracker.is_allowed("ip:b@example.com")[0] is False

    tracker._now = lambda: start + timedelta(minutes=15, seconds=1)
    assert tracker.is_allowed("ip:b@example.com") == (True, 0)
    assert tracker.record_failure("ip:b@example.com") == (False, 0)


def test_extra_field_maps_to_invalid_update():
    exc = RequestValidationError(
        [{"type": "extra_forbidden", "loc": ("body", "foo"), "msg": "Extra inputs are not permitted", "input": "bar"}]
    )
    error = _validation_error(exc)
    assert isinstance(error, InvalidUpdate)
    assert error.http_status == 400
    assert error.message == "Invalid updates!"


def test_missing_field_maps_to_validation_error():
    exc = RequestValidationError([{"type": "missing", "loc": ("body", "location"), "msg": "Field required"}])
    error = _validation_error(exc)
    assert type(error) is ValidationError
    assert error.message == "location is required"
