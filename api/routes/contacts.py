"""Contacts CRUD and per-contact interaction history."""
import logging
from datetime import datetime, timezone
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

import db.repositories.contacts as contacts_repo
import db.repositories.history as history_repo
from api.dependencies import CurrentProfile, SessionDep, error, permission
from db.models import Contact, Profile
from db.serialize import to_dict
from schemas.contact import ContactCreate, ContactUpdate, HistoryCreate
from services.access import contact_scope
from services.activities import log_activity
from services.contacts import TIMED_TYPES, duplicate_message, history_to_appointment
from services.importer import normalize_life_stage
from services.scheduling import to_utc
from settings import crm_timezone

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_CONTACT_INFO = "Bạn phải nhập ít nhất email hoặc số điện thoại!"


def _visible(contact: Contact, scope: Optional[list[UUID]]) -> bool:
    return scope is None or contact.assigned_to in scope


async def _load_visible(session, profile: Profile, contact_id: UUID) -> Contact:
    contact = await contacts_repo.get(session, contact_id)
    if contact is None or not _visible(contact, await contact_scope(session, profile)):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Contact not found")
    return contact


def _contact_values(body, provided: set[str]) -> dict:
    values = {field: getattr(body, field) for field in provided}
    if "life_stage" in values:
        values["life_stage"] = normalize_life_stage(values["life_stage"]) or "subscriber"
    if values.get("email"):
        values["email"] = values["email"].strip().lower()
    if values.get("next_appointment_at") is not None:
        values["next_appointment_at"] = to_utc(values["next_appointment_at"], crm_timezone())
    return values


@router.get("")
async def list_contacts(
    session: SessionDep,
    profile: CurrentProfile,
    search: Optional[str] = None,
    life_stage: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(contacts_repo.PAGE_SIZE, ge=1, le=100),
):
    """One page of the contacts the caller may see, with each contact's latest activity time."""
    scope = await contact_scope(session, profile)
    rows, total = await contacts_repo.list_scoped(
        session, scope, search=search, life_stage=life_stage, page=page, per_page=per_page
    )
    latest = await history_repo.latest_action_times(session, [c.id for c in rows])
    items = []
    for contact in rows:
        latest_at = latest.get(contact.id)
        items.append({
            **to_dict(contact),
            "latest_appointment": latest_at.isoformat() if latest_at else None,
        })
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.get("/{contact_id}")
async def get_contact(contact_id: UUID, session: SessionDep, profile: CurrentProfile):
    contact = await _load_visible(session, profile, contact_id)
    return {
        **to_dict(contact),
        "history_count": await contacts_repo.count_history(session, contact.id),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_contact(body: ContactCreate, session: SessionDep, profile: CurrentProfile):
    """Create a contact after checking that its email or phone is not taken."""
    if not body.email and not body.phone:
        return error(400, MISSING_CONTACT_INFO)
    if await contacts_repo.find_duplicate(session, body.email, body.phone):
        return error(409, duplicate_message(body.email, body.phone))

    values = _contact_values(body, set(type(body).model_fields))
    values["assigned_to"] = values.get("assigned_to") or profile.id
    values["created_by"] = profile.id
    values["last_updated_by"] = profile.id
    contact = await contacts_repo.create(session, values)
    await log_activity(
        session, profile.id, "contact_created", str(contact.id), "contact",
        {"name": contact.name},
    )
    await session.commit()
    return to_dict(contact)


@router.put("/{contact_id}")
async def update_contact(
    contact_id: UUID, body: ContactUpdate, session: SessionDep, profile: CurrentProfile
):
    current = await _load_visible(session, profile, contact_id)
    values = _contact_values(body, body.model_fields_set)
    if "name" in values and not values["name"]:
        values.pop("name")
    email = values["email"] if "email" in values else current.email
    phone = values["phone"] if "phone" in values else current.phone
    if not email and not phone:
        return error(400, MISSING_CONTACT_INFO)
    if values.get("email") or values.get("phone"):
        duplicate = await contacts_repo.find_duplicate(
            session, values.get("email"), values.get("phone"), exclude_id=contact_id
        )
        if duplicate is not None:
            return error(409, duplicate_message(values.get("email"), values.get("phone")))

    values["last_updated_by"] = profile.id
    contact = await contacts_repo.update_fields(session, contact_id, values)
    await log_activity(
        session, profile.id, "contact_updated", str(contact_id), "contact",
        {"fields": sorted(k for k in values if k != "last_updated_by")},
    )
    await session.commit()
    return to_dict(contact)


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: UUID,
    session: SessionDep,
    profile: Annotated[Profile, Depends(permission("contacts", "delete"))],
):
    """Delete the contact together with its history."""
    contact = await _load_visible(session, profile, contact_id)
    history_count = await contacts_repo.count_history(session, contact_id)
    await contacts_repo.delete_with_history(session, contact_id)
    # target_type is left unset: the contact row no longer exists to touch
    await log_activity(
        session, profile.id, "contact_deleted", str(contact_id), None,
        {"name": contact.name, "history_deleted": history_count},
    )
    await session.commit()
    logger.info("Contact %s deleted with %d history entries", contact_id, history_count)
    return {"success": True, "history_deleted": history_count}


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@router.get("/{contact_id}/history")
async def list_history(contact_id: UUID, session: SessionDep, profile: CurrentProfile):
    await _load_visible(session, profile, contact_id)
    rows = await history_repo.list_for_contact(session, contact_id)
    return [{**to_dict(r["entry"]), "author_name": r["author_name"]} for r in rows]


@router.post("/{contact_id}/history", status_code=status.HTTP_201_CREATED)
async def add_history(
    contact_id: UUID, body: HistoryCreate, session: SessionDep, profile: CurrentProfile
):
    """Add an interaction; a future action_time also books an appointment."""
    contact = await _load_visible(session, profile, contact_id)
    tz = crm_timezone()
    entry = await history_repo.add(session, {
        "contact_id": contact_id,
        "type": body.type,
        "content": body.content,
        "action_time": to_utc(body.action_time, tz) if body.action_time else None,
        "duration_minutes": body.duration_minutes if body.type in TIMED_TYPES else None,
        "location": body.location,
        "due_date": to_utc(body.due_date, tz) if body.due_date and body.type == "task" else None,
        "created_by": profile.id,
    })
    appointment = await history_to_appointment(
        session, contact, entry, datetime.now(timezone.utc)
    )
    await log_activity(
        session, profile.id, "contact_activity_added", str(contact_id), "contact",
        {"type": body.type, "history_id": str(entry.id)},
    )
    await session.commit()
    return {
        **to_dict(entry),
        "appointment_id": str(appointment.id) if appointment is not None else None,
    }


@router.delete("/{contact_id}/history/{history_id}")
async def delete_history(
    contact_id: UUID, history_id: UUID, session: SessionDep, profile: CurrentProfile
):
    await _load_visible(session, profile, contact_id)
    entry = await history_repo.get(session, history_id)
    if entry is None or entry.contact_id != contact_id:
        return error(404, "History entry not found")
    await history_repo.delete_entry(session, history_id)
    await log_activity(
        session, profile.id, "contact_activity_deleted", str(contact_id), "contact",
        {"type": entry.type, "history_id": str(history_id)},
    )
    await session.commit()
    return {"success": True}
