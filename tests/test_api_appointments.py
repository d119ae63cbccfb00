"""API tests for /api/appointments (repositories mocked)."""
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from db.models import Appointment

REPO = "api.routes.appointments.appointments_repo"
SLOT = datetime(2026, 3, 10, 2, 0, tzinfo=timezone.utc)  # 09:00 in Ho Chi Minh City


def _appointment(**overrides) -> Appointment:
    values = {
        "id": uuid.uuid4(),
        "title": "Gặp khách hàng",
        "scheduled_at": SLOT,
        "duration_minutes": 60,
        "status": "scheduled",
        "attendees": [],
    }
    values.update(overrides)
    return Appointment(**values)


class TestCreateAppointment:
    @pytest.mark.asyncio
    async def test_overlap_returns_409_with_conflicts(self, client, session, caller):
        existing = _appointment(created_by=caller.id)
        with patch(f"{REPO}.owner_candidates", new=AsyncMock(return_value=[existing])) as candidates, \
                patch(f"{REPO}.create", new=AsyncMock()) as create:
            resp = await client.post(
                "/api/appointments",
                json={"title": "Demo", "scheduled_at": "2026-03-10T09:30:00", "duration_minutes": 30},
            )

        assert resp.status_code == 409
        body = resp.json()
        assert body["error"] == "Bạn đã có lịch hẹn khác bị trùng trong khoảng thời gian này!"
        assert body["conflicts"][0]["id"] == str(existing.id)
        # naive input is local time
        assert candidates.await_args.args[2] == SLOT + timedelta(minutes=30)
        create.assert_not_awaited()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_back_to_back_slot_is_booked(self, client, session, caller):
        existing = _appointment(created_by=caller.id)
        created = _appointment(scheduled_at=SLOT + timedelta(hours=1), created_by=caller.id)
        with patch(f"{REPO}.owner_candidates", new=AsyncMock(return_value=[existing])), \
                patch(f"{REPO}.create", new=AsyncMock(return_value=created)) as create, \
                patch("api.routes.appointments.log_activity", new=AsyncMock()):
            resp = await client.post(
                "/api/appointments",
                json={"title": "Demo", "scheduled_at": "2026-03-10T10:00:00+07:00"},
            )

        assert resp.status_code == 201
        values = create.await_args.args[1]
        assert values["attendees"] == [str(caller.id)]
        assert values["created_by"] == caller.id
        session.commit.assert_awaited_once()


class TestUpdateAppointment:
    @pytest.mark.asyncio
    async def test_moving_onto_another_slot_returns_409(self, client, caller):
        current = _appointment(created_by=caller.id)
        other = _appointment(scheduled_at=SLOT + timedelta(hours=3), created_by=caller.id)
        with patch(f"{REPO}.get", new=AsyncMock(return_value=current)), \
                patch(f"{REPO}.owner_candidates", new=AsyncMock(return_value=[other])) as candidates, \
                patch(f"{REPO}.update_fields", new=AsyncMock()) as update:
            resp = await client.put(
                f"/api/appointments/{current.id}",
                json={"scheduled_at": "2026-03-10T12:30:00+07:00"},
            )

        assert resp.status_code == 409
        assert candidates.await_args.kwargs["exclude_id"] == current.id
        update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_null_status_is_ignored(self, client, caller):
        current = _appointment(created_by=caller.id)
        with patch(f"{REPO}.get", new=AsyncMock(return_value=current)), \
                patch(f"{REPO}.update_fields", new=AsyncMock(return_value=current)) as update, \
                patch("api.routes.appointments.log_activity", new=AsyncMock()):
            resp = await client.put(
                f"/api/appointments/{current.id}", json={"status": None, "title": "Đổi tên"}
            )

        assert resp.status_code == 200
        assert update.await_args.args[2] == {"title": "Đổi tên"}


class TestOwnership:
    @pytest.fixture
    def caller(self):
        from conftest import make_profile
        return make_profile("sales")

    @pytest.mark.asyncio
    async def test_other_users_appointment_is_not_editable(self, client):
        theirs = _appointment(created_by=uuid.uuid4())
        with patch(f"{REPO}.get", new=AsyncMock(return_value=theirs)), \
                patch(f"{REPO}.update_fields", new=AsyncMock()) as update:
            resp = await client.put(f"/api/appointments/{theirs.id}", json={"title": "x"})

        assert resp.status_code == 404
        update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_users_appointment_is_not_deletable(self, client, session):
        theirs = _appointment(created_by=uuid.uuid4())
        with patch(f"{REPO}.get", new=AsyncMock(return_value=theirs)), \
                patch(f"{REPO}.delete_appointment", new=AsyncMock()) as delete:
            resp = await client.delete(f"/api/appointments/{theirs.id}")

        assert resp.status_code == 404
        assert resp.json()["error"] == "Appointment not found"
        delete.assert_not_awaited()
        session.commit.assert_not_awaited()
