"""Tests for the appointment reminder pass (repositories and push sender mocked)."""
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo

import pytest

from services.reminders import (
    IMMEDIATE,
    REMINDERS,
    build_body,
    format_local_time,
    immediate_window,
    offset_window,
    run_reminders,
)

MODULE = "services.reminders"
NOW = datetime(2025, 7, 20, 2, 50, tzinfo=timezone.utc)
TZ = ZoneInfo("Asia/Ho_Chi_Minh")


def _appointment(**overrides):
    values = {
        "id": uuid.uuid4(),
        "title": "Demo sản phẩm",
        "type": "meeting",
        "scheduled_at": NOW + timedelta(minutes=10),
        "duration_minutes": 30,
        "location": "Văn phòng",
        "contact_id": None,
        "created_by": uuid.uuid4(),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _owner(appt, token="tok-1"):
    return SimpleNamespace(id=appt.created_by, fcm_token=token)


class TestWindows:
    def test_offset_window_has_45_second_grace(self):
        start, end = offset_window(NOW, 10)
        assert start == NOW + timedelta(minutes=10, seconds=-45)
        assert end == NOW + timedelta(minutes=10, seconds=45)

    def test_immediate_window(self):
        start, end, created_since = immediate_window(NOW)
        assert (start, end) == (NOW, NOW + timedelta(minutes=10))
        assert created_since == NOW - timedelta(minutes=5)

    def test_stage_order_and_types(self):
        assert IMMEDIATE.type == "appointment_now"
        assert [s.type for s in REMINDERS] == ["appointment_t10", "appointment_t5"]


class TestMessageText:
    def test_local_time_format(self):
        assert format_local_time(NOW, TZ) == "09:50 20/07/2025"

    def test_t10_body(self):
        appt = _appointment()
        body = build_body(REMINDERS[0], appt, "10:00 20/07/2025", "Nguyễn An")
        assert body == (
            'Lịch hẹn "Demo sản phẩm" với Nguyễn An sẽ diễn ra lúc 10:00 20/07/2025 '
            "(còn ~10 phút). • Địa điểm: Văn phòng • Thời lượng: 30 phút • Loại: meeting"
        )

    def test_empty_location_marker_is_hidden(self):
        appt = _appointment(location="EMPTY", duration_minutes=None, type=None)
        body = build_body(IMMEDIATE, appt, "10:00 20/07/2025", None)
        assert body == 'Bạn vừa tạo lịch hẹn "Demo sản phẩm" lúc 10:00 20/07/2025 (còn < 10 phút).'


@pytest.fixture
def repos():
    with patch(f"{MODULE}.appointments_repo") as appointments, \
            patch(f"{MODULE}.profiles_repo") as profiles, \
            patch(f"{MODULE}.notifications_repo") as notifications, \
            patch(f"{MODULE}.contacts_repo") as contacts:
        appointments.created_recently_in_window = AsyncMock(return_value=[])
        appointments.in_window = AsyncMock(return_value=[])
        profiles.get = AsyncMock()
        profiles.clear_fcm_token = AsyncMock()
        notifications.already_sent = AsyncMock(return_value=False)
        notifications.record_once = AsyncMock(return_value=True)
        contacts.get = AsyncMock(return_value=None)
        yield SimpleNamespace(
            appointments=appointments, profiles=profiles,
            notifications=notifications, contacts=contacts,
        )


class TestRunReminders:
    @pytest.mark.asyncio
    async def test_queries_each_stage_window(self, repos):
        await run_reminders(AsyncMock(), now=NOW, send=MagicMock())

        repos.appointments.created_recently_in_window.assert_awaited_once()
        _, start, end, created_since = repos.appointments.created_recently_in_window.await_args.args
        assert (start, end, created_since) == immediate_window(NOW)
        windows = [call.args[1:] for call in repos.appointments.in_window.await_args_list]
        assert windows == [offset_window(NOW, 10), offset_window(NOW, 5)]

    @pytest.mark.asyncio
    async def test_sends_and_records_once(self, repos):
        appt = _appointment()
        repos.appointments.in_window.side_effect = [[appt], []]
        repos.profiles.get.return_value = _owner(appt)
        send = MagicMock(return_value={"sent": True, "message_id": "m1"})
        session = AsyncMock()

        summary = await run_reminders(session, now=NOW, send=send)

        assert summary == {"sent": 1, "skipped": 0, "failed": 0}
        token, title, body, url, data = send.call_args.args
        assert token == "tok-1"
        assert title == "Nhắc nhở lịch hẹn"
        assert url == f"https://crm.example.com/appointments/{appt.id}"
        assert data == {"appointment_id": str(appt.id), "type": "appointment_t10"}
        record = repos.notifications.record_once.await_args.args[1]
        assert record["type"] == "appointment_t10"
        assert record["reference_id"] == str(appt.id)
        assert record["priority"] == "high"
        assert record["payload"]["en"]["title"] == "Appointment reminder"
        session.commit.assert_awaited()

    @pytest.mark.asyncio
    async def test_already_sent_is_skipped(self, repos):
        appt = _appointment()
        repos.appointments.in_window.side_effect = [[appt], []]
        repos.profiles.get.return_value = _owner(appt)
        repos.notifications.already_sent.return_value = True
        send = MagicMock()

        summary = await run_reminders(AsyncMock(), now=NOW, send=send)

        assert summary == {"sent": 0, "skipped": 1, "failed": 0}
        send.assert_not_called()
        repos.notifications.record_once.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owner_without_token_is_skipped(self, repos):
        appt = _appointment()
        repos.appointments.in_window.side_effect = [[], [appt]]
        repos.profiles.get.return_value = _owner(appt, token=None)
        send = MagicMock()

        summary = await run_reminders(AsyncMock(), now=NOW, send=send)

        assert summary["skipped"] == 1
        send.assert_not_called()

    @pytest.mark.asyncio
    async def test_unregistered_token_is_cleared(self, repos):
        appt = _appointment()
        repos.appointments.in_window.side_effect = [[appt], []]
        repos.profiles.get.return_value = _owner(appt, token="stale")
        send = MagicMock(return_value={"sent": False, "unregistered": True, "error": "UNREGISTERED"})
        session = AsyncMock()

        summary = await run_reminders(session, now=NOW, send=send)

        assert summary == {"sent": 0, "skipped": 0, "failed": 1}
        repos.profiles.clear_fcm_token.assert_awaited_once_with(session, appt.created_by, "stale")
        repos.notifications.record_once.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_failures_keep_the_token(self, repos):
        appt = _appointment()
        repos.appointments.in_window.side_effect = [[appt], []]
        repos.profiles.get.return_value = _owner(appt)
        send = MagicMock(return_value={"sent": False, "unregistered": False, "error": "500"})

        summary = await run_reminders(AsyncMock(), now=NOW, send=send)

        assert summary["failed"] == 1
        repos.profiles.clear_fcm_token.assert_not_awaited()
