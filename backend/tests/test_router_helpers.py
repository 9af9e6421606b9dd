"""Tests for pure helpers that live alongside their routers."""

from datetime import datetime, timedelta
from types import SimpleNamespace
from uuid import uuid4

from app.models.enums import CommentEntityType
from app.routers.comments import nest_comments
from app.routers.projects import build_stats
from app.routers.webhooks import should_unsubscribe
from app.schemas.comment import CommentResponse
from app.schemas.webhook import ResendWebhookEvent


def _comment(parent_id=None, minutes=0):
    return CommentResponse(
        id=uuid4(),
        entity_type=CommentEntityType.COST,
        entity_id=uuid4(),
        project_id=uuid4(),
        user_id=uuid4(),
        content="Looks right",
        parent_comment_id=parent_id,
        created_at=datetime(2026, 10, 1) + timedelta(minutes=minutes),
    )


class TestNestComments:

    def test_replies_attached_to_parent(self):
        first = _comment()
        second = _comment(minutes=1)
        reply = _comment(parent_id=first.id, minutes=2)

        nested = nest_comments([first, second, reply])

        assert [c.id for c in nested] == [first.id, second.id]
        assert [r.id for r in nested[0].replies] == [reply.id]
        assert nested[1].replies == []

    def test_reply_to_missing_parent_dropped(self):
        orphan = _comment(parent_id=uuid4())
        assert nest_comments([orphan]) == []


class TestShouldUnsubscribe:

    def test_hard_bounce(self):
        event = ResendWebhookEvent(type="email.bounced", data={"email_id": "re_1", "bounce_type": "hard"})
        assert should_unsubscribe(event) is True

    def test_soft_bounce(self):
        event = ResendWebhookEvent(type="email.bounced", data={"email_id": "re_1", "bounce_type": "soft"})
        assert should_unsubscribe(event) is False

    def test_complaint(self):
        assert should_unsubscribe(ResendWebhookEvent(type="email.complained")) is True

    def test_delivered(self):
        assert should_unsubscribe(ResendWebhookEvent(type="email.delivered")) is False


class TestBuildStats:

    def test_with_budget(self):
        project = SimpleNamespace(id=uuid4(), total_budget=200_000)
        stats = build_stats(project, total_spent=50_000, cost_count=4, document_count=2)
        assert stats.budget_remaining == 150_000
        assert stats.budget_used_percent == 25.0
        assert stats.cost_count == 4

    def test_over_budget(self):
        project = SimpleNamespace(id=uuid4(), total_budget=100)
        stats = build_stats(project, total_spent=150, cost_count=1, document_count=0)
        assert stats.budget_remaining == -50
        assert stats.budget_used_percent == 150.0

    def test_without_budget(self):
        project = SimpleNamespace(id=uuid4(), total_budget=None)
        stats = build_stats(project, total_spent=999, cost_count=1, document_count=0)
        assert stats.budget_remaining is None
        assert stats.budget_used_percent is None
        assert stats.total_spent == 999
