"""Gesture controller tests: mouse/touch state machine, drops, resize, auto-scroll"""

import asyncio

import pytest

from dispatchboard.domain.scheduling.gestures import GestureController, GestureKind, GestureState, ResizeEdge
from dispatchboard.domain.scheduling.grid import CalendarGrid, ScrollViewport
from dispatchboard.domain.scheduling.input import PointerSample
from dispatchboard.domain.scheduling.mutations import BookingBoard, MutationCoordinator
from dispatchboard.domain.scheduling.schemas import MoveRequest, ResizeRequest

from .conftest import DAY, at

# Single-day grid: gutter 64px, one 100px column, hour rows from 07:00, 60px per hour.
# y = (hour - 7) * 60 inside the column (x = 100).
COLUMN_X = 100


def y_for(hour, minute=0):
    return (hour - 7) * 60 + minute


@pytest.fixture
def grid():
    return CalendarGrid([DAY], ScrollViewport(top=0, left=0, width=164, height=600))


@pytest.fixture
def committed():
    return []


@pytest.fixture
def controller(context, grid, alice_day, committed):
    return GestureController(context, grid, alice_day, committer=committed.append)


def test_mouse_drag_commits_move_preserving_duration(controller, alice_day, committed, context):
    b1 = alice_day[0]
    assert controller.pointer_down(b1, PointerSample.mouse(COLUMN_X, y_for(8)))
    assert controller.state == GestureState.ARMED

    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(12), 16))
    assert controller.state == GestureState.DRAGGING
    assert controller.proposed_interval.start == at(12)
    assert controller.proposed_interval.end == at(13)
    assert not controller.conflict

    result = controller.pointer_up()

    assert result.committed
    assert committed == [MoveRequest(booking_id="b1", new_start=at(12), new_end=at(13))]
    assert controller.state == GestureState.IDLE
    assert context.active_session is None


def test_touch_under_jitter_is_promoted_by_long_press(controller, alice_day):
    controller.pointer_down(alice_day[0], PointerSample.touch(COLUMN_X, y_for(8), 0))

    controller.pointer_move(PointerSample.touch(COLUMN_X + 5, y_for(8) + 3, 100))
    assert controller.state == GestureState.ARMED

    controller.tick(399)
    assert controller.state == GestureState.ARMED

    controller.tick(400)
    assert controller.state == GestureState.DRAGGING


def test_touch_moved_past_jitter_before_long_press_is_dropped(controller, alice_day, committed, context):
    controller.pointer_down(alice_day[0], PointerSample.touch(COLUMN_X, y_for(8), 0))

    controller.pointer_move(PointerSample.touch(COLUMN_X, y_for(8) + 20, 100))

    assert controller.state == GestureState.IDLE
    assert context.active_session is None
    assert controller.pointer_up().status == "cancelled"
    assert committed == []
    assert context.notifier.notices == []


def test_touch_event_after_deadline_promotes_before_moving(controller, alice_day, committed):
    controller.pointer_down(alice_day[0], PointerSample.touch(COLUMN_X, y_for(8), 0))
    controller.pointer_move(PointerSample.touch(COLUMN_X, y_for(14), 450))

    assert controller.state == GestureState.DRAGGING
    assert controller.proposed_interval.start == at(14)
    assert controller.pointer_up().committed
    assert committed[0].new_start == at(14)


def test_release_before_dragging_is_a_tap(controller, alice_day, committed):
    controller.pointer_down(alice_day[0], PointerSample.touch(COLUMN_X, y_for(8), 0))
    result = controller.pointer_up(PointerSample.touch(COLUMN_X, y_for(8), 120))

    assert result.status == "cancelled"
    assert committed == []


def test_conflicting_drop_is_refused_with_notice(controller, alice_day, committed, context):
    controller.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(8)))
    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(10, 30)))
    assert controller.conflict

    result = controller.pointer_up()

    assert result.status == "conflict"
    assert committed == []
    assert context.notifier.last.level == "conflict"
    assert context.active_session is None


def test_conflict_flag_is_advisory_while_dragging(controller, alice_day, committed):
    controller.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(8)))
    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(10)))
    assert controller.conflict

    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(15)))
    assert not controller.conflict
    assert controller.pointer_up().committed


def test_other_staff_booking_does_not_block_drop(controller, alice_day, committed):
    # Bob's 08:00-09:00 booking; Alice's bookings are elsewhere
    controller.pointer_down(alice_day[2], PointerSample.mouse(COLUMN_X, y_for(8)))
    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(10)))
    assert not controller.conflict
    assert controller.pointer_up().committed


def test_drop_outside_grid_cancels(controller, alice_day, committed):
    controller.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(8)))
    controller.pointer_move(PointerSample.mouse(10, y_for(12)))

    result = controller.pointer_up()

    assert result.status == "cancelled"
    assert committed == []


def test_second_pointer_down_is_ignored_across_views(context, grid, alice_day, committed):
    week = GestureController(context, grid, alice_day, committer=committed.append)
    day = GestureController(context, grid, alice_day, committer=committed.append)

    assert week.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(8)))
    assert not day.pointer_down(alice_day[1], PointerSample.mouse(COLUMN_X, y_for(10)))
    assert day.state == GestureState.IDLE

    week.cancel()
    assert context.active_session is None
    assert day.pointer_down(alice_day[1], PointerSample.mouse(COLUMN_X, y_for(10)))


def test_resize_bottom_edge_only_moves_end(controller, alice_day, committed):
    controller.pointer_down(
        alice_day[0], PointerSample.mouse(COLUMN_X, y_for(9)), kind=GestureKind.RESIZE, edge=ResizeEdge.BOTTOM
    )
    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(9) + 30))

    assert controller.pointer_up().committed
    assert committed == [ResizeRequest(booking_id="b1", new_end=at(9, 30))]


def test_resize_top_edge_only_moves_start(controller, alice_day, committed):
    controller.pointer_down(
        alice_day[0], PointerSample.mouse(COLUMN_X, y_for(8)), kind=GestureKind.RESIZE, edge=ResizeEdge.TOP
    )
    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(8) - 40))

    assert controller.pointer_up().committed
    assert committed == [ResizeRequest(booking_id="b1", new_start=at(7, 20))]


def test_resize_below_minimum_produces_no_proposal(controller, alice_day, committed):
    controller.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(9)), kind=GestureKind.RESIZE)
    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(9) - 55))
    assert controller.proposed_interval.end - controller.proposed_interval.start == at(8, 10) - at(8)

    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(9) - 60))
    assert controller.proposed_interval is None

    result = controller.pointer_up()
    assert result.status == "cancelled"
    assert "at least 10 minutes" in result.reason
    assert committed == []


def test_resize_released_without_change_is_cancelled(controller, alice_day, committed):
    controller.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(9)), kind=GestureKind.RESIZE)
    controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(9) + 2))

    result = controller.pointer_up()
    assert result.status == "cancelled"
    assert committed == []


def test_auto_scroll_near_bottom_edge_shifts_proposal(controller, alice_day, grid):
    controller.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(8)))
    controller.pointer_move(PointerSample.mouse(COLUMN_X, 590))
    assert controller.proposed_interval.start == at(16, 50)

    assert controller.tick(1000) == 10
    assert grid.viewport.scroll_top == 10
    assert controller.proposed_interval.start == at(17)


def test_auto_scroll_idle_in_middle(controller, alice_day, grid):
    controller.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(8)))
    controller.pointer_move(PointerSample.mouse(COLUMN_X, 300))

    assert controller.tick(1000) == 0
    assert grid.viewport.scroll_top == 0


def test_handle_event_drives_full_mouse_gesture(controller, alice_day, committed):
    controller.handle_event({"type": "mousedown", "clientX": COLUMN_X, "clientY": y_for(8)}, booking=alice_day[0])
    controller.handle_event({"type": "mousemove", "clientX": COLUMN_X, "clientY": y_for(13)})
    result = controller.handle_event({"type": "mouseup", "clientX": COLUMN_X, "clientY": y_for(13)})

    assert result.committed
    assert committed[0].new_start == at(13)


def test_handle_event_touchcancel_cancels(controller, alice_day, committed):
    controller.handle_event(
        {"type": "touchstart", "touches": [{"clientX": COLUMN_X, "clientY": y_for(8)}], "timeStamp": 0},
        booking=alice_day[0],
    )
    result = controller.handle_event({"type": "touchcancel"})

    assert result.status == "cancelled"
    assert controller.state == GestureState.IDLE
    assert committed == []


class _AcceptingStore:
    async def update(self, booking_id, fields):
        return None


def test_commit_refused_by_coordinator_is_reported_rejected(context, grid, alice_day):
    # The view only knows b1; the board also holds Alice's 10:00-11:00 booking
    board = BookingBoard(alice_day)
    coordinator = MutationCoordinator(context, board, _AcceptingStore())
    controller = GestureController(context, grid, [alice_day[0]], committer=coordinator.submit)

    async def scenario():
        controller.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(8)))
        controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(10, 30)))
        assert not controller.conflict
        return controller.pointer_up()

    result = asyncio.run(scenario())

    assert result.status == "rejected"
    assert result.reason.startswith("Conflict")
    assert board.get("b1").start == at(8)
    assert context.notifier.last.level == "conflict"


def test_dispatched_commit_through_coordinator(context, grid, alice_day):
    board = BookingBoard(alice_day)
    coordinator = MutationCoordinator(context, board, _AcceptingStore())
    controller = GestureController(context, grid, board, committer=coordinator.submit)

    async def scenario():
        controller.pointer_down(alice_day[0], PointerSample.mouse(COLUMN_X, y_for(8)))
        controller.pointer_move(PointerSample.mouse(COLUMN_X, y_for(15)))
        result = controller.pointer_up()
        shown = board.get("b1").start
        return result, shown, await result.dispatched

    result, shown, outcome = asyncio.run(scenario())

    assert result.committed
    assert shown == at(15)
    assert outcome.committed
