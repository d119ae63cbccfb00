"""Contact rules: duplicate messages and history-to-calendar sync."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.appointments as appointments_repo
from db.models import Appointment, Contact, ContactHistory
from services.scheduling import DEFAULT_DURATION_MINUTES

logger = logging.getLogger(__name__)

TIMED_TYPES = ("call", "meeting")


def duplicate_message(email: Optional[str], phone: Optional[str]) -> str:
    """Bilingual-app toast text for a contact whose email/phone already exists."""
    parts = []
    if email:
        parts.append(f'email "{email}"')
    if phone:
        parts.append(f'số điện thoại "{phone}"')
    return f"Liên hệ với {' hoặc '.join(parts)} đã tồn tại!"


async def history_to_appointment(
    session: AsyncSession,
    contact: Contact,
    entry: ContactHistory,
    now: datetime,
) -> Optional[Appointment]:
    """Put a future history entry on the author's calendar.

    Entries whose action_time is missing or already past are left alone.
    """
    if entry.action_time is None or entry.action_time < now:
        return None
    appointment = await appointments_repo.create(session, {
        "contact_id": contact.id,
        "title": f"{entry.type} với {contact.name}",
        "type": entry.type,
        "scheduled_at": entry.action_time,
        "duration_minutes": entry.duration_minutes or DEFAULT_DURATION_MINUTES,
        "status": "scheduled",
        "description": entry.content,
        "created_by": entry.created_by,
        "attendees": [str(entry.created_by)] if entry.created_by else [],
        "location": entry.location or "",
    })
    logger.info("History entry %s synced to appointment %s", entry.id, appointment.id)
    return appointment
