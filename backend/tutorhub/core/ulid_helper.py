"""ULID and deterministic identifier helpers."""

from datetime import date, time
import hashlib
from typing import Optional

import ulid


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.ULID())


def parse_ulid(ulid_str: str) -> Optional[ulid.ULID]:
    """Parse and validate a ULID string."""
    try:
        return ulid.ULID.from_str(ulid_str)
    except (ValueError, TypeError):
        return None


def is_valid_ulid(ulid_str: str) -> bool:
    """Check if a string is a valid ULID."""
    return parse_ulid(ulid_str) is not None


def slot_key(teacher_id: str, slot_date: date, start_time: time, end_time: time) -> str:
    """Canonical text form of the booking key (teacherId, date, startTime, endTime)."""
    return (
        f"{teacher_id}:{slot_date.isoformat()}:"
        f"{start_time.strftime('%H:%M')}-{end_time.strftime('%H:%M')}"
    )


def build_slot_id(teacher_id: str, slot_date: date, start_time: time, end_time: time) -> str:
    """Deterministic slot identity: the same rule on the same date always hashes the same."""
    digest = hashlib.sha256(
        slot_key(teacher_id, slot_date, start_time, end_time).encode("utf-8")
    ).hexdigest()
    return f"slot_{digest[:24]}"
