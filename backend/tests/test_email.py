"""Tests for email rate limiting, unsubscribe tokens, digest scheduling and dispatch."""

from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from jose import jwt

from app.core.config import get_settings
from app.models.email import DigestQueue, EmailLog
from app.models.enums import DigestFrequency, DigestType, EmailStatus, NotificationType
from app.services.email import (
    UNSUBSCRIBE_ALGORITHM,
    UNSUBSCRIBE_AUDIENCE,
    UNSUBSCRIBE_ISSUER,
    DigestDeliveryError,
    EmailDeliveryError,
    EmailNotificationService,
    EmailRateLimiter,
    calculate_next_digest_time,
    generate_unsubscribe_token,
    verify_unsubscribe_token,
)
from app.services.email_templates import DigestItem, DigestProjectGroup
from tests.conftest import make_result

settings = get_settings()


class TestRateLimiter:

    def test_blocks_after_limit(self):
        limiter = EmailRateLimiter(max_per_window=3)
        user_id = uuid4()
        now = datetime(2026, 10, 19, 9, 0)
        assert [limiter.can_send(user_id, now=now) for _ in range(4)] == [True, True, True, False]
        assert limiter.current_count(user_id, now=now) == 3

    def test_window_slides(self):
        limiter = EmailRateLimiter(max_per_window=1, window=timedelta(hours=1))
        user_id = uuid4()
        start = datetime(2026, 10, 19, 9, 0)
        assert limiter.can_send(user_id, now=start)
        assert not limiter.can_send(user_id, now=start + timedelta(minutes=59))
        assert limiter.can_send(user_id, now=start + timedelta(hours=1))

    def test_large_expense_bypasses_limit(self):
        limiter = EmailRateLimiter(max_per_window=1)
        user_id = uuid4()
        now = datetime(2026, 10, 19, 9, 0)
        assert limiter.can_send(user_id, now=now)
        assert limiter.can_send(user_id, is_large_expense=True, now=now)
        # bypassed sends are not counted
        assert limiter.current_count(user_id, now=now) == 1

    def test_limits_are_per_user(self):
        limiter = EmailRateLimiter(max_per_window=1)
        now = datetime(2026, 10, 19, 9, 0)
        assert limiter.can_send(uuid4(), now=now)
        assert limiter.can_send(uuid4(), now=now)

    def test_idle_users_are_forgotten(self):
        limiter = EmailRateLimiter(max_per_window=1, window=timedelta(hours=1))
        user_id = uuid4()
        start = datetime(2026, 10, 19, 9, 0)
        limiter.can_send(user_id, now=start)
        assert limiter.current_count(user_id, now=start + timedelta(hours=2)) == 0
        assert str(user_id) not in limiter._sent

    def test_reset(self):
        limiter = EmailRateLimiter(max_per_window=1)
        user_id = uuid4()
        now = datetime(2026, 10, 19, 9, 0)
        limiter.can_send(user_id, now=now)
        limiter.reset(user_id)
        assert limiter.can_send(user_id, now=now)


class TestUnsubscribeToken:

    def test_round_trip(self):
        user_id = uuid4()
        assert verify_unsubscribe_token(generate_unsubscribe_token(user_id)) == user_id

    def test_expired_token_rejected(self):
        token = generate_unsubscribe_token(uuid4(), now=datetime.utcnow() - timedelta(days=365))
        assert verify_unsubscribe_token(token) is None

    def test_garbage_rejected(self):
        assert verify_unsubscribe_token("not-a-token") is None

    def test_wrong_secret_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "purpose": "unsubscribe", "iss": UNSUBSCRIBE_ISSUER, "aud": UNSUBSCRIBE_AUDIENCE},
            "some-other-secret",
            algorithm=UNSUBSCRIBE_ALGORITHM,
        )
        assert verify_unsubscribe_token(token) is None

    def test_other_purpose_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "purpose": "login", "iss": UNSUBSCRIBE_ISSUER, "aud": UNSUBSCRIBE_AUDIENCE},
            settings.unsubscribe_secret,
            algorithm=UNSUBSCRIBE_ALGORITHM,
        )
        assert verify_unsubscribe_token(token) is None


class TestNextDigestTime:
    # 2026-10-19 is a Monday; Sydney is on AEDT (UTC+11)

    def test_daily_later_today(self):
        now = datetime(2026, 10, 18, 20, 0)  # Mon 07:00 Sydney
        assert calculate_next_digest_time(DigestType.DAILY, "Australia/Sydney", now) == datetime(2026, 10, 18, 21, 0)

    def test_daily_rolls_to_tomorrow(self):
        now = datetime(2026, 10, 19, 0, 0)  # Mon 11:00 Sydney
        assert calculate_next_digest_time(DigestType.DAILY, "Australia/Sydney", now) == datetime(2026, 10, 19, 21, 0)

    def test_weekly_this_monday(self):
        now = datetime(2026, 10, 18, 20, 0)
        assert calculate_next_digest_time(DigestType.WEEKLY, "Australia/Sydney", now) == datetime(2026, 10, 18, 21, 0)

    def test_weekly_next_monday(self):
        now = datetime(2026, 10, 19, 0, 0)
        assert calculate_next_digest_time(DigestType.WEEKLY, "Australia/Sydney", now) == datetime(2026, 10, 25, 21, 0)

    def test_weekly_from_midweek_utc(self):
        now = datetime(2026, 10, 21, 9, 0)  # Wednesday
        assert calculate_next_digest_time(DigestType.WEEKLY, "UTC", now) == datetime(2026, 10, 26, 8, 0)

    def test_invalid_timezone_falls_back_to_utc(self):
        now = datetime(2026, 10, 19, 6, 0)
        assert calculate_next_digest_time(DigestType.DAILY, "Mars/Olympus", now) == datetime(2026, 10, 19, 8, 0)


class TestDispatch:

    @pytest.fixture
    def user(self):
        return SimpleNamespace(id=uuid4(), email="owner@example.com", first_name="Alex")

    @pytest.fixture
    def limiter(self):
        return EmailRateLimiter(max_per_window=1)

    @pytest.fixture
    def client(self):
        client = AsyncMock()
        client.send.return_value = "re_123"
        return client

    @pytest.fixture
    def service(self, mock_db, client, limiter):
        return EmailNotificationService(mock_db, client=client, rate_limiter=limiter)

    def _notification(self, user, notification_type=NotificationType.COST_ADDED):
        return SimpleNamespace(
            id=uuid4(),
            user_id=user.id,
            project_id=uuid4(),
            type=notification_type,
            message="New cost added: Timber frame ($4,500.00) in Bondi Renovation",
        )

    def _prefs(self, frequency=DigestFrequency.IMMEDIATE, **toggles):
        fields = dict(
            email_on_cost=True,
            email_on_large_expense=True,
            email_digest_frequency=frequency,
            timezone="Australia/Sydney",
        )
        fields.update(toggles)
        return SimpleNamespace(**fields)

    def _added(self, mock_db, model):
        return [c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], model)]

    async def test_toggle_off_skips(self, service, mock_db, client, user):
        mock_db.execute.return_value = make_result(scalar=self._prefs(email_on_cost=False))

        assert await service.dispatch(self._notification(user), "Bondi") == "skipped"
        client.send.assert_not_awaited()
        mock_db.add.assert_not_called()

    async def test_never_skips(self, service, mock_db, client, user):
        mock_db.execute.side_effect = [
            make_result(scalar=self._prefs(DigestFrequency.NEVER)),
            make_result(scalar=user),
        ]

        assert await service.dispatch(self._notification(user), "Bondi") == "skipped"
        client.send.assert_not_awaited()
        mock_db.add.assert_not_called()

    async def test_daily_is_queued(self, service, mock_db, client, user):
        mock_db.execute.side_effect = [
            make_result(scalar=self._prefs(DigestFrequency.DAILY)),
            make_result(scalar=user),
        ]

        assert await service.dispatch(self._notification(user), "Bondi") == "queued"
        client.send.assert_not_awaited()
        (entry,) = self._added(mock_db, DigestQueue)
        assert entry.digest_type == DigestType.DAILY
        assert entry.user_id == user.id
        assert entry.processed is False

    async def test_weekly_is_queued(self, service, mock_db, user):
        mock_db.execute.side_effect = [
            make_result(scalar=self._prefs(DigestFrequency.WEEKLY)),
            make_result(scalar=user),
        ]

        assert await service.dispatch(self._notification(user), "Bondi") == "queued"
        (entry,) = self._added(mock_db, DigestQueue)
        assert entry.digest_type == DigestType.WEEKLY

    async def test_immediate_is_sent_and_logged(self, service, mock_db, client, user):
        mock_db.execute.side_effect = [make_result(scalar=self._prefs()), make_result(scalar=user)]

        assert await service.dispatch(self._notification(user), "Bondi") == "sent"
        client.send.assert_awaited_once()
        (log,) = self._added(mock_db, EmailLog)
        assert log.status == EmailStatus.SENT
        assert log.resend_id == "re_123"

    async def test_immediate_is_rate_limited(self, service, mock_db, client, limiter, user):
        limiter.can_send(user.id)
        mock_db.execute.side_effect = [make_result(scalar=self._prefs()), make_result(scalar=user)]

        assert await service.dispatch(self._notification(user), "Bondi") == "rate_limited"
        client.send.assert_not_awaited()

    async def test_large_expense_skips_digest_and_rate_limit(self, service, mock_db, client, limiter, user):
        limiter.can_send(user.id)
        mock_db.execute.side_effect = [
            make_result(scalar=self._prefs(DigestFrequency.DAILY)),
            make_result(scalar=user),
        ]

        result = await service.dispatch(self._notification(user, NotificationType.LARGE_EXPENSE), "Bondi")

        assert result == "sent"
        assert self._added(mock_db, DigestQueue) == []
        client.send.assert_awaited_once()

    async def test_send_failure_is_logged(self, service, mock_db, client, user):
        client.send.side_effect = EmailDeliveryError("Resend returned 500")
        mock_db.execute.side_effect = [make_result(scalar=self._prefs()), make_result(scalar=user)]

        assert await service.dispatch(self._notification(user), "Bondi") == "failed"
        (log,) = self._added(mock_db, EmailLog)
        assert log.status == EmailStatus.FAILED
        assert log.last_error == "Resend returned 500"


class TestSendDigest:

    async def test_failure_carries_log_details(self, mock_db):
        client = AsyncMock()
        client.send.side_effect = EmailDeliveryError("Resend returned 500")
        service = EmailNotificationService(mock_db, client=client, rate_limiter=EmailRateLimiter())
        user = SimpleNamespace(id=uuid4(), email="owner@example.com", first_name="Alex")
        groups = [
            DigestProjectGroup(
                project_id=uuid4(),
                project_name="Bondi Renovation",
                items=[DigestItem("New cost added", datetime(2026, 10, 18, 9, 0))],
            )
        ]

        with pytest.raises(DigestDeliveryError) as exc:
            await service.send_digest(user, DigestType.DAILY, groups)

        assert exc.value.user is user
        assert exc.value.email_type == "daily_digest"
        assert exc.value.reason == "Resend returned 500"
        assert exc.value.subject
        mock_db.add.assert_not_called()
