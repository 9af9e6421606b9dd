"""Tests for digest grouping, rendering and queue processing."""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, call
from uuid import uuid4

import pytest

from app.models.enums import DigestType, EmailStatus
from app.services.digest import DigestRunResult, DigestService, group_by_project
from app.services.email import DigestDeliveryError
from app.services.email_templates import format_currency, render_digest_email
from tests.conftest import make_result


def _notification(project_id, message, created_at):
    return SimpleNamespace(project_id=project_id, message=message, created_at=created_at)


class TestGroupByProject:

    def test_groups_and_orders(self):
        bondi, manly = uuid4(), uuid4()
        rows = [
            (_notification(manly, "Manly cost", datetime(2026, 10, 2)), "Manly"),
            (_notification(bondi, "Bondi later", datetime(2026, 10, 3)), "Bondi"),
            (_notification(bondi, "Bondi first", datetime(2026, 10, 1)), "Bondi"),
        ]
        groups = group_by_project(rows)

        assert [g.project_name for g in groups] == ["Bondi", "Manly"]
        assert [i.message for i in groups[0].items] == ["Bondi first", "Bondi later"]

    def test_missing_project_name(self):
        groups = group_by_project([(_notification(None, "Orphan", datetime(2026, 10, 1)), None)])
        assert groups[0].project_name == "Unknown Project"

    def test_empty(self):
        assert group_by_project([]) == []


class TestRenderDigest:

    def test_subject_and_count(self):
        rows = [
            (_notification(uuid4(), "New cost added: Tiles", datetime(2026, 10, 1)), "Bondi"),
            (_notification(uuid4(), "New document uploaded: plan.pdf", datetime(2026, 10, 2)), "Manly"),
        ]
        subject, html = render_digest_email(
            DigestType.WEEKLY, "Sam", group_by_project(rows), "tok", now=datetime(2026, 10, 19)
        )
        assert subject.startswith("Your Weekly Project Digest")
        assert "You have 2 updates" in html
        assert "/unsubscribe/tok" in html

    def test_messages_are_escaped(self):
        rows = [(_notification(uuid4(), "<script>x</script>", datetime(2026, 10, 1)), "Bondi")]
        _, html = render_digest_email(DigestType.DAILY, "Sam", group_by_project(rows), None)
        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestRunResult:

    def test_as_dict(self):
        run = DigestRunResult(users_processed=2, emails_sent=1, queue_items_processed=5, failures=["u"])
        assert run.as_dict() == {
            "users_processed": 2,
            "emails_sent": 1,
            "queue_items_processed": 5,
            "failures": ["u"],
        }


class TestFormatCurrency:

    def test_thousands_separator(self):
        assert format_currency(123456) == "$1,234.56"

    def test_zero_and_negative(self):
        assert format_currency(0) == "$0.00"
        assert format_currency(-5050) == "-$50.50"


class TestProcess:

    NOW = datetime(2026, 10, 19, 8, 0)

    @pytest.fixture
    def email_service(self):
        return AsyncMock()

    @pytest.fixture
    def service(self, mock_db, email_service):
        service = DigestService(mock_db, email_service=email_service)
        service.mark_processed = AsyncMock()
        return service

    def _user(self, email):
        return SimpleNamespace(id=uuid4(), email=email, first_name=email.split("@")[0].title())

    def _entry(self, user, notification):
        return SimpleNamespace(
            id=uuid4(), user_id=user.id, digest_type=DigestType.DAILY, notification_id=notification.id
        )

    def _notification(self, project_id, message):
        return SimpleNamespace(
            id=uuid4(), project_id=project_id, message=message, created_at=datetime(2026, 10, 18, 9, 0)
        )

    @pytest.fixture
    def queue(self, mock_db):
        alex, sam = self._user("alex@example.com"), self._user("sam@example.com")
        project_id = uuid4()
        n1 = self._notification(project_id, "New cost added: Timber")
        n2 = self._notification(project_id, "New document uploaded: plans.pdf")
        n3 = self._notification(project_id, "New timeline event: Slab poured")
        entries = [self._entry(alex, n1), self._entry(alex, n2), self._entry(sam, n3)]
        mock_db.execute.side_effect = [
            make_result(scalars=entries),
            make_result(rows=[(n1, "Bondi"), (n2, "Bondi"), (n3, "Bondi")]),
            make_result(rows=[(alex, None)]),
            make_result(rows=[(sam, None)]),
        ]
        return SimpleNamespace(alex=alex, sam=sam, entries=entries)

    async def test_nothing_due(self, service, mock_db, email_service):
        mock_db.execute.return_value = make_result(scalars=[])

        run = await service.process(now=self.NOW)

        assert run.as_dict() == {
            "users_processed": 0, "emails_sent": 0, "queue_items_processed": 0, "failures": []
        }
        email_service.send_digest.assert_not_awaited()

    async def test_every_claimed_row_marked(self, service, email_service, queue):
        run = await service.process(now=self.NOW)

        assert run.users_processed == 2
        assert run.emails_sent == 2
        assert run.queue_items_processed == 3
        assert email_service.send_digest.await_count == 2
        e1, e2, e3 = queue.entries
        assert service.mark_processed.await_args_list == [
            call([e1.id, e2.id], self.NOW),
            call([e3.id], self.NOW),
        ]

    async def test_failed_user_stays_pending(self, service, email_service, queue):
        async def send(user, digest_type, groups):
            if user is queue.alex:
                raise DigestDeliveryError(user, "daily_digest", "Your daily digest", "Resend returned 500")
            return "re_1"

        email_service.send_digest.side_effect = send

        run = await service.process(now=self.NOW)

        assert run.failures == [str(queue.alex.id)]
        assert run.users_processed == 1
        assert run.queue_items_processed == 1
        service.mark_processed.assert_awaited_once_with([queue.entries[2].id], self.NOW)
        email_service.log_email.assert_awaited_once_with(
            queue.alex.id, "daily_digest", "alex@example.com", "Your daily digest",
            EmailStatus.FAILED, error="Resend returned 500",
        )
