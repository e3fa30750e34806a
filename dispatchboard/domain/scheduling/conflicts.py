"""
Staff double-booking detection.

A conflict is two bookings with the same (non-empty) assignee whose half-open
[start, end) intervals overlap. Back-to-back bookings (one ends exactly when
the next starts) do not conflict.
"""

from datetime import datetime
from typing import Iterable, Optional


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    return start_a < end_b and end_a > start_b


def _competes_with(candidate, other) -> bool:
    if other.id == candidate.id:
        return False
    if not other.assignee or other.assignee != candidate.assignee:
        return False
    return intervals_overlap(candidate.start, candidate.end, other.start, other.end)


def find_conflicts(candidate, existing: Iterable) -> list:
    """Return the bookings in ``existing`` that the candidate would collide with"""
    if not candidate.assignee:
        return []
    return [other for other in existing if _competes_with(candidate, other)]


def has_conflict(candidate, existing: Iterable) -> bool:
    """
    True if placing ``candidate`` would double-book its assignee.

    ``candidate`` needs ``id``, ``assignee``, ``start`` and ``end``; the booking
    with the candidate's own id is ignored, so re-checking a booking against a
    set that still contains its old placement is safe. Unassigned candidates
    never conflict.
    """
    if not candidate.assignee:
        return False
    return any(_competes_with(candidate, other) for other in existing)


def describe_conflict(conflicts: list, assignee: Optional[str] = None) -> str:
    """Human-readable conflict reason for notices"""
    if not conflicts:
        return "No conflict"
    first = conflicts[0]
    label = getattr(first, "summary", None) or getattr(first, "customer_name", None) or first.id
    window = f"{first.start:%H:%M}-{first.end:%H:%M}"
    who = f" for {assignee}" if assignee else ""
    more = f" (+{len(conflicts) - 1} more)" if len(conflicts) > 1 else ""
    return f"Conflict{who}: overlaps '{label}' {window}{more}"
