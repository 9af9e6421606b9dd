"""Tests for project permission gating."""

from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi import HTTPException

from app.models.enums import AccessLevel, AccessPermission
from app.services.authorization import (
    assert_project_owner,
    get_project_permission_level,
    has_write_access,
    verify_entity_access,
    verify_multiple_projects_access,
    verify_project_access,
    verify_project_ownership,
)
from tests.conftest import make_result


class TestPermissionLevel:

    async def test_missing_project_has_no_access(self, mock_db, owner_id):
        mock_db.execute.return_value = make_result(scalar=None)
        project, level = await get_project_permission_level(mock_db, uuid4(), owner_id)
        assert project is None
        assert level == AccessLevel.NONE

    async def test_owner_has_write(self, mock_db, project, owner_id):
        mock_db.execute.return_value = make_result(scalar=project)
        _, level = await get_project_permission_level(mock_db, project.id, owner_id)
        assert level == AccessLevel.WRITE
        # owner short-circuits the grant lookup
        assert mock_db.execute.await_count == 1

    async def test_stranger_has_no_access(self, mock_db, project):
        mock_db.execute.side_effect = [make_result(scalar=project), make_result(scalars=[])]
        _, level = await get_project_permission_level(mock_db, project.id, uuid4())
        assert level == AccessLevel.NONE

    async def test_read_grant(self, mock_db, project):
        mock_db.execute.side_effect = [
            make_result(scalar=project),
            make_result(scalars=[AccessPermission.READ]),
        ]
        _, level = await get_project_permission_level(mock_db, project.id, uuid4())
        assert level == AccessLevel.READ

    async def test_write_grant_wins_over_read(self, mock_db, project):
        mock_db.execute.side_effect = [
            make_result(scalar=project),
            make_result(scalars=[AccessPermission.READ, AccessPermission.WRITE]),
        ]
        _, level = await get_project_permission_level(mock_db, project.id, uuid4())
        assert level == AccessLevel.WRITE


class TestVerifyProjectAccess:

    async def test_owner_gets_project(self, mock_db, project, owner_id):
        mock_db.execute.return_value = make_result(scalar=project)
        result = await verify_project_access(mock_db, project.id, owner_id, AccessPermission.WRITE)
        assert result is project

    async def test_reader_cannot_write(self, mock_db, project):
        mock_db.execute.side_effect = [
            make_result(scalar=project),
            make_result(scalars=[AccessPermission.READ]),
        ]
        with pytest.raises(HTTPException) as exc:
            await verify_project_access(mock_db, project.id, uuid4(), AccessPermission.WRITE)
        assert exc.value.status_code == 403

    async def test_reader_can_read(self, mock_db, project):
        mock_db.execute.side_effect = [
            make_result(scalar=project),
            make_result(scalars=[AccessPermission.READ]),
        ]
        assert await verify_project_access(mock_db, project.id, uuid4()) is project

    async def test_missing_project_is_forbidden(self, mock_db):
        mock_db.execute.return_value = make_result(scalar=None)
        with pytest.raises(HTTPException) as exc:
            await verify_project_access(mock_db, uuid4(), uuid4())
        assert exc.value.status_code == 403
        assert exc.value.detail == "Project not found or you do not have access"

    async def test_has_write_access(self, mock_db, project, owner_id):
        mock_db.execute.return_value = make_result(scalar=project)
        assert await has_write_access(mock_db, project.id, owner_id) is True


class TestOwnership:

    async def test_ownership_lookup_miss_is_forbidden(self, mock_db):
        mock_db.execute.return_value = make_result(scalar=None)
        with pytest.raises(HTTPException) as exc:
            await verify_project_ownership(mock_db, uuid4(), uuid4())
        assert exc.value.status_code == 403

    def test_assert_project_owner(self, project, owner_id):
        assert_project_owner(project, owner_id, "invite partners")
        with pytest.raises(HTTPException) as exc:
            assert_project_owner(project, uuid4(), "invite partners")
        assert exc.value.detail == "Only project owners can invite partners"


class TestMultipleProjects:

    async def test_denied_projects_are_skipped(self, mock_db, owner_id):
        mine = SimpleNamespace(id=uuid4(), owner_id=owner_id)
        theirs = SimpleNamespace(id=uuid4(), owner_id=uuid4())
        mock_db.execute.side_effect = [
            make_result(scalar=mine),
            make_result(scalar=theirs),
            make_result(scalars=[]),
        ]
        allowed = await verify_multiple_projects_access(mock_db, [mine.id, theirs.id], owner_id)
        assert allowed == [mine.id]


class TestEntityAccess:

    def test_returns_entity(self):
        entity = object()
        assert verify_entity_access(entity, "Cost") is entity

    def test_missing_entity_is_404(self):
        with pytest.raises(HTTPException) as exc:
            verify_entity_access(None, "Cost")
        assert exc.value.status_code == 404
        assert exc.value.detail == "Cost not found"
