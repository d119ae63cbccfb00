"""CSV export of contacts and of the activity log."""
import csv
import io
import json
from datetime import date, datetime
from typing import Iterable, Optional

EXPORT_FIELDS = {
    "name": "Name",
    "email": "Email",
    "phone": "Phone",
    "company": "Company",
    "stage": "Stage",
    "assigned_to": "Assigned To",
    "created_at": "Created Date",
    "tags": "Tags",
    "notes": "Notes",
}
REQUIRED_FIELDS = ("name", "email")
DEFAULT_FIELDS = ("name", "email", "phone", "company")

ACTIVITY_HEADER = ["Timestamp", "User", "Action", "Contact", "Detail", "Type"]


def select_fields(fields: Optional[Iterable[str]]) -> list[str]:
    """Known export fields in display order; name and email are always included."""
    wanted = set(fields or DEFAULT_FIELDS) | set(REQUIRED_FIELDS)
    return [f for f in EXPORT_FIELDS if f in wanted]


def _fmt(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def contacts_csv(contacts: Iterable, fields: list[str], assignee_names: dict) -> str:
    """Render contacts as CSV with English header labels.

    'stage' reads the life_stage column and 'assigned_to' is rendered as
    the assignee's display name.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow([EXPORT_FIELDS[f] for f in fields])
    for contact in contacts:
        row = []
        for field in fields:
            if field == "stage":
                value = contact.life_stage
            elif field == "assigned_to":
                value = assignee_names.get(contact.assigned_to, "")
            else:
                value = getattr(contact, field)
            row.append(_fmt(value))
        writer.writerow(row)
    return buf.getvalue()


def activity_csv(entries: Iterable[dict]) -> str:
    """Render activity_log listing rows (see activity.list_entries) as CSV."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(ACTIVITY_HEADER)
    for item in entries:
        entry = item["entry"]
        detail = entry.detail
        writer.writerow([
            _fmt(entry.created_at),
            item.get("user_name") or "",
            entry.action_type,
            item.get("contact_name") or "",
            json.dumps(detail, ensure_ascii=False) if detail else "",
            entry.target_type or "",
        ])
    return buf.getvalue()


def export_filename(prefix: str, today: date) -> str:
    return f"{prefix}_{today.isoformat()}.csv"
