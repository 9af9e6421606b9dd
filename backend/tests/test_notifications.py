"""Tests for notification messages, mentions, fan-out and retention."""

from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.core.config import get_settings
from app.models.enums import CommentEntityType, NotificationEntityType, NotificationType
from app.services.notification_cleanup import retention_cutoff
from app.services.notifications import (
    NotificationService,
    comment_added_message,
    cost_added_message,
    document_uploaded_message,
    is_large_expense,
    large_expense_message,
    notify_safely,
    parse_mentions,
    partner_invited_message,
    timeline_event_message,
)
from tests.conftest import make_result

settings = get_settings()


class TestMessages:

    def test_cost_added(self):
        assert (
            cost_added_message("Timber frame", 450000, "Bondi Renovation")
            == "New cost added: Timber frame ($4,500.00) in Bondi Renovation"
        )

    def test_large_expense(self):
        assert (
            large_expense_message("Roof replacement", 2500000, "Bondi Renovation")
            == "Large expense alert: Roof replacement ($25,000.00) in Bondi Renovation"
        )

    def test_document_uploaded(self):
        assert document_uploaded_message("plans.pdf", "Bondi") == "New document uploaded: plans.pdf in Bondi"

    def test_timeline_event(self):
        assert timeline_event_message("Slab poured", "Bondi") == "New timeline event: Slab poured in Bondi"

    def test_partner_invited(self):
        assert partner_invited_message("Sam Lee", "Bondi") == "Sam Lee invited you to collaborate on Bondi"

    def test_comment_added(self):
        assert comment_added_message("Sam Lee", "cost", "Bondi") == "Sam Lee commented on cost in Bondi"


class TestMentions:

    def test_underscores_become_spaces(self):
        assert parse_mentions("Thanks @John_Smith for the quote") == ["john smith"]

    def test_duplicates_removed_in_order(self):
        assert parse_mentions("@jane can you check with @Bob and @jane") == ["jane", "bob"]

    def test_no_mentions(self):
        assert parse_mentions("email me at jo at example") == []


class TestLargeExpense:

    def test_threshold_is_inclusive(self):
        assert is_large_expense(1_000_000) is True
        assert is_large_expense(999_999) is False


class TestNotifySafely:

    async def test_commits_on_success(self, mock_db):
        work = AsyncMock(return_value=[])
        await notify_safely(mock_db, work(), "cost_added")
        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_awaited()

    async def test_failure_is_rolled_back_and_swallowed(self, mock_db):
        async def explode():
            raise RuntimeError("smtp down")

        await notify_safely(mock_db, explode(), "cost_added")
        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()


class TestFanOut:

    @pytest.fixture
    def email_service(self):
        return AsyncMock()

    @pytest.fixture
    def service(self, mock_db, email_service):
        return NotificationService(mock_db, email_service=email_service)

    async def test_project_members_exclude_actor(self, service, mock_db, email_service, project):
        partner_id, actor_id = uuid4(), uuid4()
        mock_db.execute.return_value = make_result(scalars=[partner_id, actor_id])

        created = await service.notify_project_members(
            project,
            actor_id,
            NotificationType.COST_ADDED,
            NotificationEntityType.COST,
            uuid4(),
            "New cost added: Timber frame ($4,500.00) in Bondi Renovation",
        )

        assert [n.user_id for n in created] == [project.owner_id, partner_id]
        assert email_service.dispatch.await_count == 2

    async def test_owner_acting_is_not_notified(self, service, mock_db, project):
        mock_db.execute.return_value = make_result(scalars=[])

        created = await service.notify_project_members(
            project,
            project.owner_id,
            NotificationType.TIMELINE_EVENT,
            NotificationEntityType.EVENT,
            uuid4(),
            "New timeline event: Slab poured in Bondi Renovation",
        )

        assert created == []
        mock_db.add.assert_not_called()

    async def test_email_failure_keeps_notification(self, service, mock_db, email_service, project):
        email_service.dispatch.side_effect = RuntimeError("resend down")
        mock_db.execute.return_value = make_result(scalars=[])

        created = await service.notify_project_members(
            project,
            uuid4(),
            NotificationType.COST_ADDED,
            NotificationEntityType.COST,
            uuid4(),
            "New cost added",
        )

        assert [n.user_id for n in created] == [project.owner_id]

    async def test_comment_audience(self, service, mock_db, project):
        author = SimpleNamespace(id=uuid4(), full_name="Sam Lee", email="sam@example.com")
        commenter_id, creator_id, mentioned_id = uuid4(), uuid4(), uuid4()
        comment = SimpleNamespace(
            entity_type=CommentEntityType.COST,
            entity_id=uuid4(),
            content="Invoice attached @Jane_Doe",
        )
        mock_db.execute.side_effect = [
            make_result(scalars=[commenter_id, author.id]),
            make_result(scalars=[mentioned_id]),
            make_result(scalars=[mentioned_id]),
        ]

        created = await service.notify_comment_added(project, comment, author, creator_id)

        assert [n.user_id for n in created] == [commenter_id, creator_id, mentioned_id]
        assert {n.type for n in created} == {NotificationType.COMMENT_ADDED}
        assert {n.entity_type for n in created} == {NotificationEntityType.COST}
        assert created[0].message == "Sam Lee commented on cost in Bondi Renovation"

    async def test_comment_author_never_notified(self, service, mock_db, project):
        author = SimpleNamespace(id=uuid4(), full_name="Sam Lee", email="sam@example.com")
        comment = SimpleNamespace(entity_type=CommentEntityType.EVENT, entity_id=uuid4(), content="Done")
        mock_db.execute.return_value = make_result(scalars=[author.id])

        created = await service.notify_comment_added(project, comment, author, author.id)

        assert created == []


class TestRetentionCutoff:

    NOW = datetime(2026, 1, 1)

    def test_default_window(self):
        assert retention_cutoff(now=self.NOW) == self.NOW - timedelta(days=settings.notification_retention_days)

    def test_explicit_window(self):
        assert retention_cutoff(days=30, now=self.NOW) == datetime(2025, 12, 2)

    @pytest.mark.parametrize("days", [0, -1])
    def test_non_positive_window_rejected(self, days):
        with pytest.raises(ValueError):
            retention_cutoff(days=days, now=self.NOW)
