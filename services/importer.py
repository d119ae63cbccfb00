"""CSV contact import: parsing, row validation, cleaning and duplicate split."""
import csv
import io
import logging
import re
import uuid
from typing import Any, Optional

from dateutil.parser import isoparse

from db.models import LIFE_STAGES

logger = logging.getLogger(__name__)

TEMPLATE_FIELDS = [
    ("name", True, "Họ và tên"),
    ("email", True, "Email"),
    ("phone", False, "Số điện thoại"),
    ("zalo", False, "Zalo"),
    ("company", False, "Tên công ty"),
    ("company_size", False, "Quy mô công ty"),
    ("industry", False, "Ngành nghề"),
    ("data_source", False, "Nguồn dữ liệu"),
    ("life_stage", False, "Giai đoạn"),
    ("assigned_to", False, "ID người phụ trách"),
    ("next_appointment_at", False, "Ngày hẹn tiếp theo (ISO)"),
    ("notes", False, "Ghi chú"),
    ("tags", False, "Tags (cách nhau bởi dấu phẩy)"),
    ("created_by", False, "ID người tạo"),
    ("address", False, "Địa chỉ"),
    ("position", False, "Chức vụ"),
]
CONTACT_FIELDS = [field for field, _, _ in TEMPLATE_FIELDS]

_SAMPLE_ROW = {
    "name": "John Doe",
    "email": "john@example.com",
    "phone": "+1234567890",
    "zalo": "john_zalo",
    "company": "Example Corp",
    "company_size": "50-100",
    "industry": "Technology",
    "data_source": "Website",
    "life_stage": "Lead",
    "assigned_to": "",
    "next_appointment_at": "2025-07-20T10:00:00+07:00",
    "notes": "Ghi chú mẫu",
    "tags": "tag1, tag2",
    "created_by": "",
    "address": "123 Đường ABC",
    "position": "Trưởng phòng",
}

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
_NULLABLE_FIELDS = ("assigned_to", "created_by", "next_appointment_at")
_UUID_FIELDS = ("assigned_to", "created_by")


def validate_row(row: dict) -> list[str]:
    """Return the validation errors for one parsed CSV row (empty when valid)."""
    errors = []
    name = (row.get("name") or "").strip()
    email = (row.get("email") or "").strip()
    phone = (row.get("phone") or "").strip()
    if not name:
        errors.append("Name is required")
    if not email and not phone:
        errors.append("Email or phone is required")
    if email and not EMAIL_RE.search(email):
        errors.append("Invalid email")
    return errors


def parse_csv(text: str) -> list[dict]:
    """Parse CSV text into rows annotated with 'status' and 'errors'.

    Blank lines are skipped; cell values are whitespace-trimmed.
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows = []
    for raw in reader:
        row = {
            (k or "").strip(): (v or "").strip() if isinstance(v, str) else v
            for k, v in raw.items()
            if k is not None
        }
        if not any(row.values()):
            continue
        errors = validate_row(row)
        row["status"] = "valid" if not errors else "error"
        row["errors"] = errors
        rows.append(row)
    return rows


def template_csv() -> str:
    """CSV template: the header row plus one example row."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CONTACT_FIELDS, lineterminator="\n")
    writer.writeheader()
    writer.writerow(_SAMPLE_ROW)
    return buf.getvalue()


def normalize_life_stage(value: Any) -> Optional[str]:
    """Lowercase a known life stage; anything else becomes None."""
    if not isinstance(value, str):
        return None
    stage = value.strip().lower()
    return stage if stage in LIFE_STAGES else None


def _split_tags(value: Any) -> list[str]:
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, list):
        return [str(t).strip() for t in value if str(t).strip()]
    return []


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        logger.debug("Ignoring non-UUID value %r", value)
        return None


def _as_datetime(value: Any):
    try:
        return isoparse(str(value))
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable datetime %r", value)
        return None


def clean_row(row: dict) -> dict:
    """Turn an imported row into column values for a contacts insert.

    Every contact column is present in the result (missing ones as None)
    so a batch goes into a single executemany insert. Tags are split on
    commas, empty id/date columns become None, and life_stage is kept only
    when it is a known stage.
    """
    data = {k: row.get(k) for k in CONTACT_FIELDS}
    for key, value in list(data.items()):
        if isinstance(value, str):
            data[key] = value.strip() or None
    data["tags"] = _split_tags(row.get("tags"))
    for key in _NULLABLE_FIELDS:
        if not data.get(key):
            data[key] = None
    for key in _UUID_FIELDS:
        if data.get(key) is not None:
            data[key] = _as_uuid(data[key])
    if data.get("next_appointment_at") is not None:
        data["next_appointment_at"] = _as_datetime(data["next_appointment_at"])
    data["life_stage"] = normalize_life_stage(row.get("life_stage"))
    if data.get("email"):
        data["email"] = data["email"].lower()
    return data


def partition_duplicates(
    rows: list[dict], existing_emails: set[str], existing_phones: set[str]
) -> tuple[list[dict], list[dict]]:
    """Split cleaned rows into (to_insert, duplicates).

    A row is a duplicate when its email or phone is already stored, or was
    used by an earlier row of the same batch.
    """
    seen_emails = {e.lower() for e in existing_emails}
    seen_phones = set(existing_phones)
    fresh, duplicates = [], []
    for row in rows:
        email = (row.get("email") or "").lower()
        phone = row.get("phone") or ""
        if (email and email in seen_emails) or (phone and phone in seen_phones):
            duplicates.append(row)
            continue
        if email:
            seen_emails.add(email)
        if phone:
            seen_phones.add(phone)
        fresh.append(row)
    return fresh, duplicates
