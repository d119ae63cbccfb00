"""Convert ORM rows into JSON-serializable dicts for API responses."""
import uuid
from datetime import date, datetime
from typing import Any, Iterable, Optional


def to_dict(obj, exclude: Iterable[str] = ()) -> Optional[dict[str, Any]]:
    """Convert an ORM object to a JSON-serializable dict (None passes through)."""
    if obj is None:
        return None
    skip = set(exclude)
    out = {}
    for c in obj.__mapper__.columns:
        if c.key in skip:
            continue
        val = getattr(obj, c.key)
        if isinstance(val, uuid.UUID):
            val = str(val)
        elif isinstance(val, (datetime, date)):
            val = val.isoformat()
        out[c.key] = val
    return out
