"""
Calendar grid geometry: pixel positions ↔ wall-clock times.

The grid is a time gutter on the left followed by one column per day; each row
is one hour, ``hour_height`` pixels tall. Pointer coordinates are viewport
(client) coordinates, so the scroll offset of the grid container has to be
added back before converting.
"""

import math
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from ...config import (
    AUTO_SCROLL_STEP_PX,
    AUTO_SCROLL_THRESHOLD_PX,
    GRID_FIRST_HOUR,
    GRID_GUTTER_WIDTH_PX,
    GRID_HOUR_COUNT,
    GRID_HOUR_HEIGHT_PX,
    SNAP_MINUTES,
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class GridCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    hour: int
    minute: int

    @property
    def instant(self) -> datetime:
        # minute may snap to 60; timedelta carries it into the next hour
        return datetime.combine(self.day, time(self.hour)) + timedelta(minutes=self.minute)


class ScrollViewport:
    """The scrollable container the grid is rendered in"""

    def __init__(
        self,
        top: float = 0.0,
        left: float = 0.0,
        width: float = 0.0,
        height: float = 0.0,
        scroll_top: float = 0.0,
        content_height: Optional[float] = None,
    ):
        self.top = top
        self.left = left
        self.width = width
        self.height = height
        self.scroll_top = scroll_top
        self.content_height = content_height if content_height is not None else height

    @property
    def max_scroll(self) -> float:
        return max(0.0, self.content_height - self.height)

    def auto_scroll(
        self,
        pointer_y: float,
        threshold: float = AUTO_SCROLL_THRESHOLD_PX,
        step: float = AUTO_SCROLL_STEP_PX,
    ) -> float:
        """Nudge the scroll offset when the pointer is near the top/bottom edge; returns the applied delta"""
        if pointer_y < self.top + threshold:
            delta = -step
        elif pointer_y > self.top + self.height - threshold:
            delta = step
        else:
            return 0.0

        previous = self.scroll_top
        self.scroll_top = min(self.max_scroll, max(0.0, self.scroll_top + delta))
        return self.scroll_top - previous


class CalendarGrid:
    """Day or week grid layout"""

    def __init__(
        self,
        days: Sequence[date],
        viewport: ScrollViewport,
        first_hour: int = GRID_FIRST_HOUR,
        hour_count: int = GRID_HOUR_COUNT,
        hour_height: float = GRID_HOUR_HEIGHT_PX,
        gutter_width: float = GRID_GUTTER_WIDTH_PX,
        snap_minutes: int = SNAP_MINUTES,
    ):
        if not days:
            raise ValueError("Calendar grid needs at least one day column")
        if hour_height <= 0 or snap_minutes <= 0:
            raise ValueError("hour_height and snap_minutes must be positive")

        self.days = list(days)
        self.viewport = viewport
        self.first_hour = first_hour
        self.hour_count = hour_count
        self.hour_height = hour_height
        self.gutter_width = gutter_width
        self.snap_minutes = snap_minutes

        if viewport.content_height <= viewport.height:
            viewport.content_height = hour_count * hour_height

    @property
    def column_width(self) -> float:
        return (self.viewport.width - self.gutter_width) / len(self.days)

    def snap(self, minutes: float) -> int:
        return round_half_up(minutes / self.snap_minutes) * self.snap_minutes

    def delta_minutes(self, dy: float) -> int:
        """Vertical pixel delta → snapped minutes"""
        return self.snap(dy / self.hour_height * 60)

    def cell_at(self, x: float, y: float) -> Optional[GridCell]:
        """Map a viewport point to the day/hour/snapped-minute under it, or None outside the grid"""
        local_x = x - self.viewport.left - self.gutter_width
        if local_x < 0 or self.column_width <= 0:
            return None

        day_index = int(local_x // self.column_width)
        if day_index >= len(self.days):
            return None

        local_y = y - self.viewport.top + self.viewport.scroll_top
        if local_y < 0:
            return None

        hour_index = int(local_y // self.hour_height)
        if hour_index >= self.hour_count:
            return None

        y_in_hour = local_y - hour_index * self.hour_height
        minute = self.snap(y_in_hour / self.hour_height * 60)
        return GridCell(day=self.days[day_index], hour=self.first_hour + hour_index, minute=minute)
