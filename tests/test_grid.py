"""Calendar grid geometry tests"""

from datetime import date

import pytest

from dispatchboard.domain.scheduling.grid import CalendarGrid, ScrollViewport

from .conftest import DAY, at


def _week_grid(scroll_top=0.0):
    days = [date(2024, 3, 4 + i) for i in range(7)]
    viewport = ScrollViewport(top=100, left=0, width=64 + 7 * 100, height=600, scroll_top=scroll_top)
    return CalendarGrid(days, viewport)


def test_content_height_follows_hour_rows():
    grid = _week_grid()
    assert grid.viewport.content_height == 17 * 60
    assert grid.viewport.max_scroll == 17 * 60 - 600


def test_cell_at_maps_column_and_snapped_minute():
    grid = _week_grid()
    cell = grid.cell_at(x=64 + 250, y=100 + 2 * 60 + 14)
    assert cell.day == date(2024, 3, 6)
    assert (cell.hour, cell.minute) == (9, 10)
    assert cell.instant == at(9, 10).replace(day=6)


def test_cell_at_adds_scroll_offset():
    grid = _week_grid(scroll_top=120)
    cell = grid.cell_at(x=64 + 10, y=100)
    assert cell.day == DAY
    assert cell.instant == at(9)


def test_minute_can_snap_into_next_hour():
    grid = _week_grid()
    cell = grid.cell_at(x=70, y=100 + 58)
    assert cell.minute == 60
    assert cell.instant == at(8)


@pytest.mark.parametrize("x,y", [(30, 200), (64 + 7 * 100 + 1, 200), (100, 99), (100, 100 + 17 * 60)])
def test_cell_at_outside_grid_is_none(x, y):
    assert _week_grid().cell_at(x, y) is None


def test_delta_minutes_snaps_half_up():
    grid = _week_grid()
    assert grid.delta_minutes(14) == 10
    assert grid.delta_minutes(15) == 20
    assert grid.delta_minutes(-60) == -60


def test_auto_scroll_near_edges_is_clamped():
    viewport = ScrollViewport(top=0, height=600, scroll_top=5, content_height=1020)
    assert viewport.auto_scroll(pointer_y=50) == -5
    assert viewport.scroll_top == 0
    assert viewport.auto_scroll(pointer_y=300) == 0
    assert viewport.auto_scroll(pointer_y=550) == 10

    viewport.scroll_top = viewport.max_scroll
    assert viewport.auto_scroll(pointer_y=590) == 0
