"""Appointment reminder pass: find due appointments and push reminders once.

Three reminder stages are checked on every pass:
  - appointment_now: scheduled within the next 10 minutes and created in
    the last 5 minutes (a just-booked appointment would otherwise be missed)
  - appointment_t10: scheduled 10 minutes from now (±45 s)
  - appointment_t5:  scheduled 5 minutes from now (±45 s)

The ±45 s grace keeps a 30 s polling cadence from missing a mark. A stage
is sent at most once per (owner, type, appointment) thanks to the unique
constraint on notifications.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, NamedTuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.appointments as appointments_repo
import db.repositories.contacts as contacts_repo
import db.repositories.notifications as notifications_repo
import db.repositories.profiles as profiles_repo
from db.models import Appointment
from settings import app_base_url, crm_timezone
from tools.fcm_tools import send_webpush

logger = logging.getLogger(__name__)

GRACE_SECONDS = 45
IMMEDIATE_WINDOW_MINUTES = 10
CREATED_GRACE_MINUTES = 5
REMINDER_TITLE = "Nhắc nhở lịch hẹn"
REMINDER_TITLE_EN = "Appointment reminder"


class ReminderStage(NamedTuple):
    type: str
    label: str
    minutes: Optional[int]


IMMEDIATE = ReminderStage("appointment_now", "now", None)
REMINDERS = (
    ReminderStage("appointment_t10", "T-10", 10),
    ReminderStage("appointment_t5", "T-5", 5),
)


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


def offset_window(now: datetime, minutes: int) -> tuple[datetime, datetime]:
    """[target - grace, target + grace] around now + minutes."""
    target = now + timedelta(minutes=minutes)
    grace = timedelta(seconds=GRACE_SECONDS)
    return target - grace, target + grace


def immediate_window(now: datetime) -> tuple[datetime, datetime, datetime]:
    """(start, end, created_since) for the send-now stage."""
    return (
        now,
        now + timedelta(minutes=IMMEDIATE_WINDOW_MINUTES),
        now - timedelta(minutes=CREATED_GRACE_MINUTES),
    )


# ---------------------------------------------------------------------------
# Message text
# ---------------------------------------------------------------------------


def format_local_time(moment: datetime, tz: tzinfo) -> str:
    """'HH:MM dd/MM/YYYY' in the given timezone."""
    return moment.astimezone(tz).strftime("%H:%M %d/%m/%Y")


def _has_location(appt: Appointment) -> bool:
    return bool(appt.location) and appt.location != "EMPTY"


def build_body(
    stage: ReminderStage, appt: Appointment, time_str: str, contact_name: Optional[str]
) -> str:
    """Vietnamese reminder text."""
    title = appt.title or "Không tiêu đề"
    who = f" với {contact_name}" if contact_name else ""
    where = f" • Địa điểm: {appt.location}" if _has_location(appt) else ""
    dura = f" • Thời lượng: {appt.duration_minutes} phút" if appt.duration_minutes else ""
    kind = f" • Loại: {appt.type}" if appt.type else ""
    if stage.minutes is None:
        left = f"còn < {IMMEDIATE_WINDOW_MINUTES} phút"
        return f'Bạn vừa tạo lịch hẹn "{title}"{who} lúc {time_str} ({left}).{where}{dura}{kind}'
    left = f"còn ~{stage.minutes} phút"
    return f'Lịch hẹn "{title}"{who} sẽ diễn ra lúc {time_str} ({left}).{where}{dura}{kind}'


def build_body_en(
    stage: ReminderStage, appt: Appointment, time_str: str, contact_name: Optional[str]
) -> str:
    """English reminder text stored alongside the Vietnamese one."""
    title = appt.title or "Untitled"
    who = f" with {contact_name}" if contact_name else ""
    where = f" • Location: {appt.location}" if _has_location(appt) else ""
    dura = f" • Duration: {appt.duration_minutes} min" if appt.duration_minutes else ""
    kind = f" • Type: {appt.type}" if appt.type else ""
    if stage.minutes is None:
        left = f"less than {IMMEDIATE_WINDOW_MINUTES} minutes left"
        return f'You just created appointment "{title}"{who} at {time_str} ({left}).{where}{dura}{kind}'
    left = f"~{stage.minutes} minutes left"
    return f'Appointment "{title}"{who} starts at {time_str} ({left}).{where}{dura}{kind}'


def appointment_url(appointment_id) -> str:
    return f"{app_base_url()}/appointments/{appointment_id}"


# ---------------------------------------------------------------------------
# Pass
# ---------------------------------------------------------------------------


async def _due_appointments(
    session: AsyncSession, stage: ReminderStage, now: datetime
) -> list[Appointment]:
    if stage.minutes is None:
        start, end, created_since = immediate_window(now)
        logger.info("[%s] window %s..%s created>=%s", stage.label, start, end, created_since)
        return await appointments_repo.created_recently_in_window(
            session, start, end, created_since
        )
    start, end = offset_window(now, stage.minutes)
    logger.info("[%s] window %s..%s", stage.label, start, end)
    return await appointments_repo.in_window(session, start, end)


async def _remind(
    session: AsyncSession,
    stage: ReminderStage,
    appt: Appointment,
    tz: tzinfo,
    send: Callable[..., dict[str, Any]],
) -> str:
    """Send one reminder. Returns 'sent', 'skipped' or 'failed'."""
    if appt.created_by is None:
        return "skipped"
    owner = await profiles_repo.get(session, appt.created_by)
    if owner is None or not owner.fcm_token:
        return "skipped"
    reference_id = str(appt.id)
    if await notifications_repo.already_sent(session, owner.id, stage.type, reference_id):
        return "skipped"

    contact = await contacts_repo.get(session, appt.contact_id) if appt.contact_id else None
    contact_name = contact.name if contact is not None else None
    time_str = format_local_time(appt.scheduled_at, tz)
    body = build_body(stage, appt, time_str, contact_name)
    body_en = build_body_en(stage, appt, time_str, contact_name)
    url = appointment_url(appt.id)

    result = await asyncio.to_thread(
        send,
        owner.fcm_token,
        REMINDER_TITLE,
        body,
        url,
        {"appointment_id": reference_id, "type": stage.type},
    )
    if not result.get("sent"):
        logger.warning(
            "Push for appointment %s (%s) failed: %s", appt.id, stage.type, result.get("error")
        )
        if result.get("unregistered"):
            await profiles_repo.clear_fcm_token(session, owner.id, owner.fcm_token)
            await session.commit()
            logger.warning("Cleared unregistered push token for user %s", owner.id)
        return "failed"

    await notifications_repo.record_once(session, {
        "user_id": owner.id,
        "type": stage.type,
        "title": REMINDER_TITLE,
        "message": body,
        "link": url,
        "payload": {
            "appointment_id": reference_id,
            "type": appt.type,
            "duration_minutes": appt.duration_minutes,
            "location": appt.location or None,
            "scheduled_at": appt.scheduled_at.isoformat(),
            "reminder_stage": stage.label,
            "contact_id": str(appt.contact_id) if appt.contact_id else None,
            "contact_name": contact_name,
            "url": url,
            "en": {"title": REMINDER_TITLE_EN, "message": body_en},
            "vi": {"title": REMINDER_TITLE, "message": body},
        },
        "priority": "high",
        "actor_id": appt.created_by,
        "contact_id": appt.contact_id,
        "contact_name": contact_name,
        "reference_id": reference_id,
        "reminder_stage": stage.label,
        "is_read": False,
    })
    await session.commit()
    logger.info("Sent %s reminder for appointment %s to user %s", stage.type, appt.id, owner.id)
    return "sent"


async def run_reminders(
    session: AsyncSession,
    now: Optional[datetime] = None,
    send: Callable[..., dict[str, Any]] = send_webpush,
) -> dict[str, int]:
    """Run one reminder pass: send-now stage first, then T-10 and T-5.

    Returns:
        Dict with 'sent', 'skipped' and 'failed' counts.
    """
    now = now or datetime.now(timezone.utc)
    tz = crm_timezone()
    summary = {"sent": 0, "skipped": 0, "failed": 0}
    for stage in (IMMEDIATE, *REMINDERS):
        appointments = await _due_appointments(session, stage, now)
        logger.info("[%s] %d matching appointment(s)", stage.label, len(appointments))
        for appt in appointments:
            outcome = await _remind(session, stage, appt, tz, send)
            summary[outcome] += 1
    logger.info(
        "Reminder pass done: %d sent, %d skipped, %d failed",
        summary["sent"], summary["skipped"], summary["failed"],
    )
    return summary
