"""Canonical snapshots for change history records."""

from __future__ import annotations

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from settlement_engine.models import Base

# Server-populated columns are left out so snapshots never trigger a reload
_EXCLUDED_COLUMNS = frozenset({"created_at"})


def _canonical(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value.normalize()) if value else "0"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def snapshot(entity: Base) -> tuple[dict[str, Any], str]:
    """Return a canonical dict of the entity's columns and its sha256 hash.

    Identical column values always produce identical hashes.
    """
    data = {
        column.name: _canonical(getattr(entity, column.key))
        for column in entity.__mapper__.columns
        if column.name not in _EXCLUDED_COLUMNS
    }
    json_str = json.dumps(data, sort_keys=True)
    return data, hashlib.sha256(json_str.encode()).hexdigest()
