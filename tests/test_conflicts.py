"""Conflict detector tests"""

from dispatchboard.domain.scheduling.conflicts import describe_conflict, find_conflicts, has_conflict
from dispatchboard.domain.scheduling.schemas import BookingCandidate, CalendarBooking

from .conftest import ALICE, BOB, at


def _booking(id, start, end, assignee=ALICE):
    return CalendarBooking(id=id, start=start, end=end, assignee=assignee)


def test_overlap_with_same_assignee():
    existing = [_booking("a", at(9), at(10))]
    candidate = BookingCandidate(id="new", assignee=ALICE, start=at(9, 30), end=at(10, 30))
    assert has_conflict(candidate, existing)


def test_overlap_is_symmetric():
    a = _booking("a", at(9), at(11))
    b = _booking("b", at(10), at(12))
    assert has_conflict(a, [b]) == has_conflict(b, [a]) is True

    c = _booking("c", at(11), at(12))
    assert has_conflict(a, [c]) == has_conflict(c, [a]) is False


def test_back_to_back_bookings_do_not_conflict():
    existing = [_booking("a", at(9), at(10))]
    assert not has_conflict(BookingCandidate(id="new", assignee=ALICE, start=at(10), end=at(11)), existing)
    assert not has_conflict(BookingCandidate(id="new", assignee=ALICE, start=at(8), end=at(9)), existing)


def test_different_or_missing_assignee_never_conflicts():
    existing = [_booking("a", at(9), at(10), assignee=BOB), _booking("u", at(9), at(10), assignee=None)]
    assert not has_conflict(BookingCandidate(id="new", assignee=ALICE, start=at(9), end=at(10)), existing)
    assert not has_conflict(BookingCandidate(id="new", assignee=None, start=at(9), end=at(10)), existing)


def test_candidate_ignores_its_own_old_placement():
    booking = _booking("a", at(9), at(10))
    moved = BookingCandidate(id="a", assignee=ALICE, start=at(9, 30), end=at(10, 30))
    assert not has_conflict(moved, [booking])


def test_find_conflicts_lists_offenders():
    existing = [
        _booking("a", at(9), at(10)),
        _booking("b", at(10), at(11)),
        _booking("c", at(12), at(13)),
    ]
    candidate = BookingCandidate(id="new", assignee=ALICE, start=at(9, 30), end=at(10, 30))
    offenders = find_conflicts(candidate, existing)

    assert [b.id for b in offenders] == ["a", "b"]
    reason = describe_conflict(offenders, ALICE)
    assert reason.startswith(f"Conflict for {ALICE}")
    assert "(+1 more)" in reason
