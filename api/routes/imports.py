"""CSV import (preview, template, bulk insert) and contact export."""
import logging
from datetime import date, datetime, time
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

import db.repositories.contacts as contacts_repo
import db.repositories.profiles as profiles_repo
from api.dependencies import CurrentProfile, SessionDep, error, permission
from db.models import Profile
from schemas.contact import ImportContactsRequest, ImportContactsResult
from services import exporter, importer
from services.activities import log_activity
from settings import crm_timezone

logger = logging.getLogger(__name__)

router = APIRouter()


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/import-contacts/template")
async def import_template():
    return _csv_response(importer.template_csv(), "contacts_template.csv")


@router.post("/import-contacts/preview")
async def import_preview(profile: CurrentProfile, file: UploadFile = File(...)):
    """Parse an uploaded CSV and return every row with its status and errors."""
    raw = await file.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return error(400, "File must be UTF-8 encoded CSV")
    rows = importer.parse_csv(text)
    valid = sum(1 for r in rows if r["status"] == "valid")
    return {"rows": rows, "valid": valid, "errors": len(rows) - valid}


@router.post("/import-contacts", response_model=ImportContactsResult)
async def import_contacts(
    body: ImportContactsRequest, session: SessionDep, profile: CurrentProfile
):
    """Insert imported contacts, skipping rows whose email or phone already exists."""
    valid_rows, invalid = [], 0
    for row in body.contacts:
        if importer.validate_row({k: "" if v is None else str(v) for k, v in row.items()}):
            invalid += 1
            continue
        cleaned = importer.clean_row(row)
        cleaned["created_by"] = cleaned.get("created_by") or profile.id
        cleaned["assigned_to"] = cleaned.get("assigned_to") or profile.id
        cleaned["life_stage"] = cleaned.get("life_stage") or "subscriber"
        valid_rows.append(cleaned)

    emails = [r["email"] for r in valid_rows if r.get("email")]
    phones = [r["phone"] for r in valid_rows if r.get("phone")]
    existing_emails, existing_phones = await contacts_repo.existing_emails_phones(
        session, emails, phones
    )
    fresh, duplicates = importer.partition_duplicates(
        valid_rows, existing_emails, existing_phones
    )
    inserted = await contacts_repo.bulk_insert(session, fresh)
    await log_activity(
        session, profile.id, "contacts_imported", None, "contact",
        {"inserted": inserted, "skipped": len(duplicates), "invalid": invalid},
    )
    await session.commit()
    logger.info(
        "Import by %s: %d inserted, %d duplicates, %d invalid",
        profile.id, inserted, len(duplicates), invalid,
    )
    return {
        "success": True,
        "inserted": inserted,
        "skipped": len(duplicates),
        "duplicates": [
            {"name": d.get("name"), "email": d.get("email"), "phone": d.get("phone")}
            for d in duplicates
        ],
        "invalid": invalid,
    }


@router.get("/export/contacts")
async def export_contacts(
    session: SessionDep,
    profile: Annotated[Profile, Depends(permission("export", "view"))],
    stages: Optional[List[str]] = Query(default=None),
    fields: Optional[List[str]] = Query(default=None),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
):
    """Download contacts as CSV, filtered by life stage and creation date."""
    tz = crm_timezone()
    contacts = await contacts_repo.list_for_export(
        session,
        stages=stages,
        date_from=datetime.combine(date_from, time.min, tzinfo=tz) if date_from else None,
        date_to=datetime.combine(date_to, time.max, tzinfo=tz) if date_to else None,
    )
    selected = exporter.select_fields(fields)
    names = {}
    if "assigned_to" in selected:
        names = await profiles_repo.names_by_id(
            session, list({c.assigned_to for c in contacts if c.assigned_to})
        )
    await log_activity(
        session, profile.id, "contacts_exported", None, "contact",
        {"count": len(contacts), "fields": selected, "stages": stages or []},
    )
    await session.commit()
    filename = exporter.export_filename("contacts_export", datetime.now(tz).date())
    return _csv_response(exporter.contacts_csv(contacts, selected, names), filename)
