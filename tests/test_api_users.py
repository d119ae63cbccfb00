"""API tests for /api/users (auth tools and repositories mocked)."""
import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import make_profile

ROUTES = "api.routes.users"


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_creates_auth_user_then_profile(self, client, session):
        uid = str(uuid.uuid4())
        with patch(f"{ROUTES}.profiles_repo.find_by_email_or_phone", new=AsyncMock(return_value=None)), \
                patch(f"{ROUTES}.create_auth_user", return_value={"id": uid}) as create_auth, \
                patch(f"{ROUTES}.profiles_repo.create", new=AsyncMock()) as create_profile, \
                patch(f"{ROUTES}.log_activity", new=AsyncMock()):
            resp = await client.post("/api/users/create", json={
                "name": "Sales B", "email": "b@example.com", "role": "Sales",
                "status": "ACTIVE", "password": "123",
            })

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "uid": uid}
        email, password = create_auth.call_args.args
        assert email == "b@example.com"
        assert len(password) == 8 and password != "123"
        profile = create_profile.await_args.args[1]
        assert profile["role"] == "sales"
        assert profile["status"] == "active"
        assert profile["manager_id"] is None
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_existing_email_or_phone_conflicts(self, client):
        with patch(f"{ROUTES}.profiles_repo.find_by_email_or_phone", new=AsyncMock(return_value=make_profile("sales"))), \
                patch(f"{ROUTES}.create_auth_user") as create_auth:
            resp = await client.post("/api/users/create", json={"name": "X", "email": "sales@example.com"})

        assert resp.status_code == 409
        assert resp.json() == {"error": "Email or phone already exists"}
        create_auth.assert_not_called()

    @pytest.mark.asyncio
    async def test_auth_failure(self, client):
        with patch(f"{ROUTES}.profiles_repo.find_by_email_or_phone", new=AsyncMock(return_value=None)), \
                patch(f"{ROUTES}.create_auth_user", return_value={"id": None, "error": "weak password"}):
            resp = await client.post("/api/users/create", json={"name": "X", "email": "x@example.com"})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Failed to create Auth user!", "detail": "weak password"}

    @pytest.mark.asyncio
    async def test_profile_insert_failure(self, client, session):
        with patch(f"{ROUTES}.profiles_repo.find_by_email_or_phone", new=AsyncMock(return_value=None)), \
                patch(f"{ROUTES}.create_auth_user", return_value={"id": str(uuid.uuid4())}), \
                patch(f"{ROUTES}.profiles_repo.create", new=AsyncMock(side_effect=IntegrityError("insert", {}, Exception("dup")))):
            resp = await client.post("/api/users/create", json={"name": "X", "email": "x@example.com"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Failed to save profile!"
        session.rollback.assert_awaited_once()


class TestUpdateUser:
    @pytest.mark.asyncio
    async def test_missing_id(self, client):
        resp = await client.post("/api/users/update", json={"name": "X"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing user ID"}

    @pytest.mark.asyncio
    async def test_updates_sent_fields_and_password(self, client):
        uid = uuid.uuid4()
        with patch(f"{ROUTES}.profiles_repo.update_fields", new=AsyncMock(return_value=make_profile("sales", id=uid))) as update, \
                patch(f"{ROUTES}.update_auth_password", return_value={"updated": True}) as update_password, \
                patch(f"{ROUTES}.log_activity", new=AsyncMock()):
            resp = await client.post("/api/users/update", json={
                "id": str(uid), "name": "New Name", "manager_id": None, "password": "longpass",
            })

        assert resp.status_code == 200
        assert update.await_args.args[2] == {"full_name": "New Name", "manager_id": None}
        update_password.assert_called_once_with(str(uid), "longpass")

    @pytest.mark.asyncio
    async def test_password_failure(self, client):
        with patch(f"{ROUTES}.profiles_repo.update_fields", new=AsyncMock(return_value=make_profile("sales"))), \
                patch(f"{ROUTES}.update_auth_password", return_value={"updated": False, "error": "nope"}):
            resp = await client.post("/api/users/update", json={"id": str(uuid.uuid4()), "password": "longpass"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Failed to update password!"


class TestDeleteUser:
    @pytest.mark.asyncio
    async def test_missing_id(self, client):
        resp = await client.post("/api/users/delete", json={})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing user id"}

    @pytest.mark.asyncio
    async def test_auth_delete_failure_keeps_profile(self, client):
        with patch(f"{ROUTES}.delete_auth_user", return_value={"deleted": False, "error": "404"}), \
                patch(f"{ROUTES}.profiles_repo.delete_profile", new=AsyncMock()) as delete_profile:
            resp = await client.post("/api/users/delete", json={"id": str(uuid.uuid4())})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Failed to delete Auth user!"
        delete_profile.assert_not_awaited()


class TestManagerAccess:
    @pytest.fixture
    def caller(self):
        return make_profile("manager")

    @pytest.mark.asyncio
    async def test_manager_can_list_but_not_create(self, client):
        with patch(f"{ROUTES}.profiles_repo.list_all", new=AsyncMock(return_value=[make_profile("sales", fcm_token="t")])):
            listed = await client.get("/api/users")
        created = await client.post("/api/users/create", json={"name": "X", "email": "x@example.com"})

        assert listed.status_code == 200
        assert "fcm_token" not in listed.json()[0]
        assert listed.json()[0]["permissions"]["users"]["view"] is False
        assert created.status_code == 403
