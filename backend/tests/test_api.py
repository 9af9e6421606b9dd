"""Tests for the FastAPI application endpoints."""

from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.database import get_db
from app.core.security import AuthenticatedUser, require_user
from app.main import app
from app.models.enums import AccessPermission, CategoryType, DigestFrequency, EmailStatus
from app.services.categories import get_valid_category
from app.services.email import generate_unsubscribe_token
from app.services.storage import get_storage_service
from tests.conftest import make_result

CRON_HEADERS = {"X-Cron-Secret": "test-cron-secret"}


@pytest.fixture
def db(mock_db):
    return mock_db


@pytest.fixture
def client(db):
    """Create test client with the database session replaced."""

    async def _override_db():
        yield db

    app.dependency_overrides[get_db] = _override_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in():
    user = AuthenticatedUser(uid="firebase-uid", email="owner@example.com", email_verified=True)
    user.db_user_id = uuid4()
    app.dependency_overrides[require_user] = lambda: user
    return user


class TestHealthEndpoint:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_root(self, client):
        data = client.get("/").json()
        assert data["version"] == "1.0.0"


class TestAuthRequired:

    def test_projects_need_bearer_token(self, client):
        resp = client.get("/v1/projects")
        assert resp.status_code in (401, 403)


class TestCron:

    def test_missing_secret(self, client):
        resp = client.post("/v1/cron/cleanup-notifications")
        assert resp.status_code == 401

    def test_wrong_secret(self, client):
        resp = client.post("/v1/cron/process-digests", headers={"X-Cron-Secret": "nope"})
        assert resp.status_code == 401

    def test_cleanup_dry_run_counts(self, client, db):
        db.execute.return_value = make_result(scalar=3)
        resp = client.post("/v1/cron/cleanup-notifications?dry_run=true&days=30", headers=CRON_HEADERS)

        assert resp.status_code == 200
        data = resp.json()
        assert data["deleted"] == 3
        assert data["dry_run"] is True
        db.commit.assert_not_awaited()


class TestUnsubscribe:

    def test_invalid_token(self, client):
        resp = client.get("/v1/notification-preferences/unsubscribe", params={"token": "garbage"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid or expired unsubscribe link"

    def test_valid_token_sets_never(self, client, db):
        preferences = SimpleNamespace(email_digest_frequency=DigestFrequency.DAILY)
        db.execute.return_value = make_result(scalar=preferences)

        token = generate_unsubscribe_token(uuid4())
        resp = client.get("/v1/notification-preferences/unsubscribe", params={"token": token})

        assert resp.status_code == 200
        assert preferences.email_digest_frequency == DigestFrequency.NEVER
        db.commit.assert_awaited()


class TestResendWebhook:

    def test_event_without_email_id(self, client):
        resp = client.post("/v1/webhooks/resend", json={"type": "email.delivered", "data": {}})
        assert resp.status_code == 200
        assert resp.json()["message"] == "No email_id to process"

    def test_unknown_email_acknowledged(self, client, db):
        db.execute.return_value = make_result(scalars=[])
        resp = client.post("/v1/webhooks/resend", json={"type": "email.delivered", "data": {"email_id": "re_1"}})
        assert resp.status_code == 200
        assert resp.json()["message"] == "Email log not found"

    def test_hard_bounce_updates_log_and_unsubscribes(self, client, db):
        email_log = SimpleNamespace(
            user_id=uuid4(), status=EmailStatus.SENT, delivered_at=None, last_error=None
        )
        db.execute.side_effect = [make_result(scalars=[email_log]), make_result()]

        resp = client.post(
            "/v1/webhooks/resend",
            json={"type": "email.bounced", "data": {"email_id": "re_1", "bounce_type": "hard", "error": "mailbox gone"}},
        )

        assert resp.status_code == 200
        assert email_log.status == EmailStatus.BOUNCED
        assert email_log.last_error == "mailbox gone"
        assert db.execute.await_count == 2


class TestValidationErrors:

    def test_cost_with_zero_amount_is_422(self, client, signed_in):
        resp = client.post(
            "/v1/costs",
            json={
                "project_id": str(uuid4()),
                "amount": 0,
                "description": "Nothing",
                "category_id": "materials",
                "date": (datetime.utcnow() - timedelta(days=1)).isoformat(),
            },
        )
        assert resp.status_code == 422

    def test_search_query_too_short_is_422(self, client, signed_in):
        resp = client.post("/v1/search", json={"query": "a"})
        assert resp.status_code == 422


class TestCategories:

    async def test_invalid_category_is_400(self, db):
        db.execute.return_value = make_result(scalar=None)
        with pytest.raises(HTTPException) as exc:
            await get_valid_category(db, "plumbing", CategoryType.DOCUMENT)
        assert exc.value.status_code == 400
        assert exc.value.detail == "Invalid document category"


def _project(owner_id, **overrides):
    fields = dict(
        id=uuid4(),
        owner_id=owner_id,
        name="Bondi Renovation",
        total_budget=None,
        start_date=None,
        end_date=None,
        deleted_at=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _cost(project_id):
    return SimpleNamespace(id=uuid4(), project_id=project_id, amount=450000, deleted_at=None)


class TestCronValidation:

    def test_negative_retention_rejected(self, client, db):
        resp = client.post("/v1/cron/cleanup-notifications?dry_run=true&days=-30", headers=CRON_HEADERS)
        assert resp.status_code == 422
        db.execute.assert_not_awaited()

    def test_zero_retention_rejected(self, client, db):
        resp = client.post("/v1/cron/cleanup-notifications?days=0", headers=CRON_HEADERS)
        assert resp.status_code == 422
        db.execute.assert_not_awaited()


class TestCostAccess:

    def test_stranger_cannot_read_cost(self, client, db, signed_in):
        project = _project(uuid4())
        db.execute.side_effect = [
            make_result(scalar=_cost(project.id)),
            make_result(scalar=project),
            make_result(scalars=[]),
        ]

        resp = client.get(f"/v1/costs/{uuid4()}")

        assert resp.status_code == 403
        assert resp.json()["detail"] == "Project not found or you do not have access"

    def test_missing_cost_is_404(self, client, db, signed_in):
        db.execute.return_value = make_result(scalar=None)
        resp = client.get(f"/v1/costs/{uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Cost not found"

    def test_read_partner_cannot_update(self, client, db, signed_in):
        project = _project(uuid4())
        cost = _cost(project.id)
        db.execute.side_effect = [
            make_result(scalar=cost),
            make_result(scalar=project),
            make_result(scalars=[AccessPermission.READ]),
        ]

        resp = client.patch(f"/v1/costs/{cost.id}", json={"amount": 5000})

        assert resp.status_code == 403
        assert cost.amount == 450000
        db.commit.assert_not_awaited()

    def test_stranger_cannot_delete(self, client, db, signed_in):
        project = _project(uuid4())
        cost = _cost(project.id)
        db.execute.side_effect = [
            make_result(scalar=cost),
            make_result(scalar=project),
            make_result(scalars=[]),
        ]

        resp = client.delete(f"/v1/costs/{cost.id}")

        assert resp.status_code == 403
        assert cost.deleted_at is None
        db.commit.assert_not_awaited()

    def test_owner_delete_is_soft(self, client, db, signed_in):
        project = _project(signed_in.db_user_id)
        cost = _cost(project.id)
        db.execute.side_effect = [make_result(scalar=cost), make_result(scalar=project)]

        resp = client.delete(f"/v1/costs/{cost.id}")

        assert resp.status_code == 200
        assert cost.deleted_at is not None
        db.delete.assert_not_awaited()
        db.commit.assert_awaited_once()


class TestCostTotals:

    def test_list_excludes_deleted_costs(self, client, db, signed_in):
        project = _project(signed_in.db_user_id)
        db.execute.side_effect = [make_result(scalar=project), make_result(scalars=[])]

        resp = client.get("/v1/costs", params={"project_id": str(project.id)})

        assert resp.status_code == 200
        assert resp.json() == []
        query = db.execute.await_args_list[1].args[0]
        assert "costs.deleted_at IS NULL" in str(query)

    def test_total_sums_non_deleted_costs(self, client, db, signed_in):
        project = _project(signed_in.db_user_id)
        db.execute.side_effect = [make_result(scalar=project), make_result(scalar=123456)]

        resp = client.get("/v1/costs/total", params={"project_id": str(project.id)})

        assert resp.status_code == 200
        assert resp.json() == {"total": 123456}
        query = db.execute.await_args_list[1].args[0]
        assert "costs.deleted_at IS NULL" in str(query)

    def test_total_with_no_costs_is_zero(self, client, db, signed_in):
        project = _project(signed_in.db_user_id)
        db.execute.side_effect = [make_result(scalar=project), make_result(scalar=None)]

        resp = client.get("/v1/costs/total", params={"project_id": str(project.id)})
        assert resp.json() == {"total": 0}

    def test_project_stats_running_totals(self, client, db, signed_in):
        project = _project(signed_in.db_user_id, total_budget=1000000)
        db.execute.side_effect = [
            make_result(scalar=project),
            make_result(rows=[(250000, 3)]),
            make_result(scalar=2),
        ]

        resp = client.get(f"/v1/projects/{project.id}/stats")

        assert resp.status_code == 200
        data = resp.json()
        assert data["total_spent"] == 250000
        assert data["budget_remaining"] == 750000
        assert data["budget_used_percent"] == 25.0
        assert data["cost_count"] == 3
        assert data["document_count"] == 2


class TestProjectAccess:

    def test_stranger_gets_404(self, client, db, signed_in):
        db.execute.side_effect = [make_result(scalar=_project(uuid4())), make_result(scalars=[])]
        resp = client.get(f"/v1/projects/{uuid4()}")
        assert resp.status_code == 404

    def test_stranger_cannot_update(self, client, db, signed_in):
        db.execute.return_value = make_result(scalar=None)
        resp = client.patch(f"/v1/projects/{uuid4()}", json={"name": "Takeover"})
        assert resp.status_code == 403
        db.commit.assert_not_awaited()

    def test_stranger_cannot_delete(self, client, db, signed_in):
        db.execute.return_value = make_result(scalar=None)
        resp = client.delete(f"/v1/projects/{uuid4()}")
        assert resp.status_code == 403
        db.commit.assert_not_awaited()


class TestPartners:

    def test_unknown_invitation_token(self, client, db):
        db.execute.return_value = make_result(rows=[])
        resp = client.get("/v1/partners/invitations/not-a-token")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Invalid invitation link."

    def test_only_owner_can_invite(self, client, db, signed_in):
        db.execute.return_value = make_result(scalar=_project(uuid4()))
        resp = client.post(f"/v1/projects/{uuid4()}/partners", json={"email": "pat@example.com"})
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Only project owners can invite partners"

    def test_pending_invitation_not_duplicated(self, client, db, signed_in):
        project = _project(signed_in.db_user_id)
        pending = SimpleNamespace(id=uuid4())
        db.execute.side_effect = [
            make_result(scalar=project),
            make_result(scalar=None),
            make_result(scalars=[pending]),
        ]

        resp = client.post(f"/v1/projects/{project.id}/partners", json={"email": "Pat@Example.com"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "pending_invitation"
        assert data["access_id"] == str(pending.id)
        assert data["can_resend"] is True
        db.add.assert_not_called()

    def test_existing_partner_reported(self, client, db, signed_in):
        project = _project(signed_in.db_user_id)
        partner = SimpleNamespace(id=uuid4(), email="pat@example.com")
        active = SimpleNamespace(
            id=uuid4(),
            project_id=project.id,
            user_id=partner.id,
            invited_email="pat@example.com",
            permission=AccessPermission.WRITE,
            invited_at=datetime(2026, 9, 1),
            expires_at=None,
            accepted_at=datetime(2026, 9, 2),
        )
        db.execute.side_effect = [
            make_result(scalar=project),
            make_result(scalar=partner),
            make_result(scalars=[active]),
        ]

        resp = client.post(f"/v1/projects/{project.id}/partners", json={"email": "pat@example.com"})

        assert resp.status_code == 200
        assert resp.json()["status"] == "already_partner"
        assert resp.json()["access"]["id"] == str(active.id)

    def _invitation(self, **overrides):
        fields = dict(
            id=uuid4(),
            project_id=uuid4(),
            user_id=None,
            invited_email="pat@example.com",
            invitation_token="tok",
            expires_at=datetime.utcnow() + timedelta(days=3),
            accepted_at=None,
        )
        fields.update(overrides)
        return SimpleNamespace(**fields)

    def test_accept_expired(self, client, db, signed_in):
        db.execute.return_value = make_result(
            scalar=self._invitation(expires_at=datetime.utcnow() - timedelta(days=1))
        )
        resp = client.post("/v1/partners/accept", json={"token": "tok"})
        assert resp.status_code == 400
        assert "expired" in resp.json()["detail"]

    def test_accept_already_accepted(self, client, db, signed_in):
        db.execute.return_value = make_result(scalar=self._invitation(accepted_at=datetime.utcnow()))
        resp = client.post("/v1/partners/accept", json={"token": "tok"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "This invitation has already been accepted."

    def test_accept_wrong_email(self, client, db, signed_in):
        user = SimpleNamespace(id=signed_in.db_user_id, email="someone.else@example.com", email_verified=False)
        db.execute.side_effect = [make_result(scalar=self._invitation()), make_result(scalar=user)]

        resp = client.post("/v1/partners/accept", json={"token": "tok"})

        assert resp.status_code == 403
        db.commit.assert_not_awaited()

    def test_accept_binds_user(self, client, db, signed_in):
        access = self._invitation()
        user = SimpleNamespace(id=signed_in.db_user_id, email="Pat@Example.com", email_verified=False)
        db.execute.side_effect = [make_result(scalar=access), make_result(scalar=user)]

        resp = client.post("/v1/partners/accept", json={"token": "tok"})

        assert resp.status_code == 200
        assert resp.json()["project_id"] == str(access.project_id)
        assert access.user_id == user.id
        assert access.accepted_at is not None
        assert access.invitation_token is None
        assert user.email_verified is True
        db.commit.assert_awaited_once()


class TestBulkDocuments:

    @pytest.fixture
    def storage(self):
        service = AsyncMock()
        app.dependency_overrides[get_storage_service] = lambda: service
        return service

    def test_delete_continues_past_failures(self, client, db, signed_in, storage):
        missing_id, broken_id, good_id = uuid4(), uuid4(), uuid4()
        document = SimpleNamespace(
            id=good_id, project_id=uuid4(), file_name="plans.pdf", blob_url="p/plans.pdf", deleted_at=None
        )
        db.execute.side_effect = [
            make_result(scalar=None),
            SQLAlchemyError("connection reset"),
            make_result(scalar=document),
            make_result(scalar=signed_in.db_user_id),
        ]

        resp = client.post(
            "/v1/documents/bulk-delete",
            json={"document_ids": [str(missing_id), str(broken_id), str(good_id)]},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["succeeded"] == [str(good_id)]
        assert data["failed"] == [str(missing_id), str(broken_id)]
        assert data["errors"][0].endswith("Document not found")
        assert data["errors"][1].endswith("Failed to delete document")
        assert document.deleted_at is not None
        storage.delete.assert_awaited_once_with("p/plans.pdf")

    def test_link_continues_past_integrity_error(self, client, db, signed_in):
        project = _project(signed_in.db_user_id)
        first = SimpleNamespace(id=uuid4(), project_id=project.id)
        second = SimpleNamespace(id=uuid4(), project_id=project.id)
        db.execute.side_effect = [
            make_result(scalar=project.id),
            make_result(scalar=project),
            make_result(scalar=first),
            make_result(scalar=project),
            make_result(scalar=None),
            make_result(scalar=second),
            make_result(scalar=project),
            make_result(scalar=None),
        ]
        db.flush.side_effect = [IntegrityError("INSERT", {}, Exception("duplicate key")), None, None]

        resp = client.post(
            "/v1/documents/bulk-link",
            json={
                "document_ids": [str(first.id), str(second.id)],
                "entity_type": "cost",
                "entity_id": str(uuid4()),
            },
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["succeeded"] == [str(second.id)]
        assert data["failed"] == [str(first.id)]
        assert data["errors"] == [f"{first.id}: Failed to link document"]
        db.commit.assert_awaited_once()

    def test_link_to_unrelated_contact_is_404(self, client, db, signed_in):
        db.execute.side_effect = [make_result(scalars=[]), make_result(scalar=None)]

        resp = client.post(
            "/v1/documents/bulk-link",
            json={"document_ids": [str(uuid4())], "entity_type": "contact", "entity_id": str(uuid4())},
        )

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Contact not found"
        db.add.assert_not_called()
