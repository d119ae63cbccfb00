"""Unit tests for contact and activity CSV export."""
import uuid
from datetime import date, datetime, timezone
from types import SimpleNamespace

from services.exporter import (
    activity_csv,
    contacts_csv,
    export_filename,
    select_fields,
)


def test_select_fields_always_keeps_name_and_email():
    assert select_fields(["phone", "bogus"]) == ["name", "email", "phone"]
    assert select_fields(None) == ["name", "email", "phone", "company"]


def test_contacts_csv_renders_stage_and_assignee_name():
    owner = uuid.uuid4()
    contact = SimpleNamespace(
        name="An", email="an@example.com", life_stage="lead",
        assigned_to=owner, tags=["vip", "hn"],
    )
    text = contacts_csv([contact], ["name", "email", "stage", "assigned_to", "tags"], {owner: "Sales A"})

    lines = text.splitlines()
    assert lines[0] == "Name,Email,Stage,Assigned To,Tags"
    assert lines[1] == 'An,an@example.com,lead,Sales A,"vip, hn"'


def test_activity_csv_keeps_unicode_detail():
    entry = SimpleNamespace(
        created_at=datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc),
        action_type="pipeline_moved",
        detail={"to": "khách hàng"},
        target_type="contact",
    )
    text = activity_csv([{"entry": entry, "user_name": "Admin", "contact_name": "An"}])

    lines = text.splitlines()
    assert lines[0] == "Timestamp,User,Action,Contact,Detail,Type"
    assert "khách hàng" in lines[1]
    assert lines[1].startswith("2025-03-01T08:00:00+00:00,Admin,pipeline_moved,An,")


def test_export_filename():
    assert export_filename("contacts_export", date(2025, 7, 1)) == "contacts_export_2025-07-01.csv"
