"""
Optimistic booking edits with field-scoped rollback.

A committed move/resize is applied to the in-memory board immediately, then
persisted asynchronously through the booking store. If the store fails (or
does not answer within the timeout) only the fields this edit touched are put
back, and only while they still hold this edit's value, so a newer edit to the
same booking is never undone by an older failure. A failed edit hands its
snapshot to the next pending edit of the same booking, so when that one fails
too the board ends on the last value the store accepted.

A write that times out keeps running. If it lands afterwards, its values are
put back on the board (where the rollback is still showing) and later writes
for the booking wait for it, so the board and the store end up agreeing.

Persistence calls for one booking are queued behind each other by default
(``serialize=True``); with ``serialize=False`` concurrent calls race and the
last one to complete wins.
"""

import asyncio
import contextlib
import logging
from datetime import datetime
from typing import Iterable, Iterator, Optional, Union

from ...config import BOOKING_PERSIST_TIMEOUT_SECONDS, SERIALIZE_BOOKING_MUTATIONS
from ...shared.context import DispatchContext
from ...shared.exceptions import ConflictError, DispatchError, PersistenceError, ValidationError
from ...shared.validators import validate_interval
from .conflicts import describe_conflict, find_conflicts
from .schemas import BookingCandidate, CalendarBooking, MoveRequest, MutationOutcome, ResizeRequest

logger = logging.getLogger(__name__)


class BookingBoard:
    """
    The in-memory booking collection shown on the calendar.

    Records are immutable; every change swaps in a new record, so a reader
    sees either the old booking or the fully updated one.
    """

    def __init__(self, bookings: Iterable[CalendarBooking] = ()):
        self._bookings: dict[str, CalendarBooking] = {b.id: b for b in bookings}

    def __iter__(self) -> Iterator[CalendarBooking]:
        return iter(list(self._bookings.values()))

    def __len__(self) -> int:
        return len(self._bookings)

    def __contains__(self, booking_id: str) -> bool:
        return booking_id in self._bookings

    def get(self, booking_id: str) -> Optional[CalendarBooking]:
        return self._bookings.get(booking_id)

    def load(self, bookings: Iterable[CalendarBooking]) -> None:
        """Replace the board contents (e.g. after a date-window fetch)"""
        self._bookings = {b.id: b for b in bookings}

    def upsert(self, booking: CalendarBooking) -> None:
        self._bookings[booking.id] = booking

    def remove(self, booking_id: str) -> None:
        self._bookings.pop(booking_id, None)

    def update_fields(self, booking_id: str, **fields) -> CalendarBooking:
        updated = self._bookings[booking_id].model_copy(update=fields)
        self._bookings[booking_id] = updated
        return updated


class MutationCommand:
    """An edit to some fields of one booking, with the values it replaced"""

    def __init__(self, booking_id: str, before: dict, after: dict):
        self.booking_id = booking_id
        self.before = before
        self.after = after
        self.late_write: Optional[asyncio.Future] = None

    @classmethod
    def capture(cls, board: BookingBoard, booking_id: str, changes: dict) -> "MutationCommand":
        current = board.get(booking_id)
        before = {field: getattr(current, field) for field in changes}
        return cls(booking_id, before, dict(changes))

    @property
    def fields(self) -> list[str]:
        return list(self.after)

    def apply(self, board: BookingBoard) -> CalendarBooking:
        return board.update_fields(self.booking_id, **self.after)

    def _swap(self, board: BookingBoard, expected: dict, replacement: dict) -> dict:
        current = board.get(self.booking_id)
        if current is None:
            return {}

        changes = {
            field: replacement[field]
            for field in replacement
            if getattr(current, field) == expected[field]
        }
        if changes:
            board.update_fields(self.booking_id, **changes)
        return changes

    def rollback(self, board: BookingBoard) -> dict:
        """Restore snapshotted fields that still hold this command's value; returns what was restored"""
        return self._swap(board, self.after, self.before)

    def reapply(self, board: BookingBoard) -> dict:
        """Put this command's values back on fields still showing the snapshot"""
        return self._swap(board, self.before, self.after)

    def __repr__(self) -> str:
        return f"MutationCommand({self.booking_id!r}, before={self.before!r}, after={self.after!r})"


class MutationCoordinator:
    """
    Applies committed gestures to the board and the booking store.

    ``store`` must provide ``async update(booking_id, fields)`` writing only the
    given fields and raising on failure.
    """

    def __init__(
        self,
        context: DispatchContext,
        board: BookingBoard,
        store,
        timeout: Optional[float] = BOOKING_PERSIST_TIMEOUT_SECONDS,
        serialize: bool = SERIALIZE_BOOKING_MUTATIONS,
    ):
        self.context = context
        self.board = board
        self.store = store
        self.timeout = timeout if timeout else None
        self.serialize = serialize
        self._locks: dict[str, asyncio.Lock] = {}
        self._late: dict[str, asyncio.Future] = {}
        # Unresolved commands per booking, oldest first
        self._pending: dict[str, list[MutationCommand]] = {}
        self.in_flight: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def move(self, booking_id: str, new_start: datetime, new_end: datetime) -> MutationOutcome:
        return await self.submit(MoveRequest(booking_id=booking_id, new_start=new_start, new_end=new_end))

    async def resize(
        self,
        booking_id: str,
        new_start: Optional[datetime] = None,
        new_end: Optional[datetime] = None,
    ) -> MutationOutcome:
        if new_start is None and new_end is None:
            return self._reject(booking_id, ValidationError("Resize needs a new start or a new end"))
        return await self.submit(ResizeRequest(booking_id=booking_id, new_start=new_start, new_end=new_end))

    def submit(self, request: Union[MoveRequest, ResizeRequest]) -> "asyncio.Future[MutationOutcome]":
        """
        Validate, apply optimistically and schedule persistence.

        Runs synchronously up to the optimistic apply, so the board already
        shows the new placement when this returns. Must be called with a
        running event loop; the returned future resolves to the outcome.
        Requests refused before the apply come back as an already-resolved
        future holding the rejected outcome.
        """
        loop = asyncio.get_running_loop()
        try:
            command = self._begin(request)
        except DispatchError as e:
            future = loop.create_future()
            future.set_result(self._reject(request.booking_id, e))
            return future

        self.in_flight[command.booking_id] = self.in_flight.get(command.booking_id, 0) + 1
        self._pending.setdefault(command.booking_id, []).append(command)
        return loop.create_task(self._persist(command, _verb(request)))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin(self, request: Union[MoveRequest, ResizeRequest]) -> MutationCommand:
        booking = self.board.get(request.booking_id)
        if booking is None:
            raise ValidationError("Booking not found")

        if isinstance(request, MoveRequest):
            changes = {"start": request.new_start, "end": request.new_end}
        else:
            changes = {}
            if request.new_start is not None:
                changes["start"] = request.new_start
            if request.new_end is not None:
                changes["end"] = request.new_end

        new_start = changes.get("start", booking.start)
        new_end = changes.get("end", booking.end)
        try:
            validate_interval(new_start, new_end, reference=booking.start)
        except ValueError as e:
            raise ValidationError(str(e))

        candidate = BookingCandidate(id=booking.id, assignee=booking.assignee, start=new_start, end=new_end)
        conflicts = find_conflicts(candidate, self.board)
        if conflicts:
            raise ConflictError(describe_conflict(conflicts, booking.assignee))

        command = MutationCommand.capture(self.board, booking.id, changes)
        command.apply(self.board)
        logger.debug(f"Optimistic apply {command!r}")
        return command

    @contextlib.asynccontextmanager
    async def _queue(self, booking_id: str):
        if not self.serialize:
            yield
            return

        lock = self._locks.setdefault(booking_id, asyncio.Lock())
        async with lock:
            late = self._late.get(booking_id)
            if late is not None and not late.done():
                # A timed-out write may still land; keep store order equal to edit order
                await asyncio.wait({late}, timeout=self.timeout)
                if not late.done():
                    logger.warning(f"⚠️ Late write for booking {booking_id} still running, continuing")
            yield

    async def _persist(self, command: MutationCommand, verb: str) -> MutationOutcome:
        booking_id = command.booking_id
        try:
            async with self._queue(booking_id):
                error = await self._write(command)
        except asyncio.CancelledError:
            command.rollback(self.board)
            self._hand_over(command, command.before)
            self._forget(command)
            raise
        finally:
            self._settle(booking_id)

        if error is None:
            self._forget(command)
            logger.info(f"✅ Booking {booking_id} {verb}: {command.after}")
            self.context.notifier.success(_SUCCESS_MESSAGES[verb])
            return MutationOutcome.ok(booking_id)

        restored = command.rollback(self.board)
        self._hand_over(command, command.before)
        if command.late_write is None:
            self._forget(command)
        logger.error(f"❌ Failed to persist booking {booking_id} ({verb}): {error}; restored {sorted(restored)}")
        self.context.notifier.error(f"{_FAILURE_MESSAGES[verb]}: {error.reason}")
        return MutationOutcome.rejected(booking_id, error)

    async def _write(self, command: MutationCommand) -> Optional[PersistenceError]:
        task = None
        try:
            task = asyncio.ensure_future(self.store.update(command.booking_id, dict(command.after)))
            if self.timeout:
                # shield: a timed-out write keeps running and is watched instead
                await asyncio.wait_for(asyncio.shield(task), self.timeout)
            else:
                await task
        except asyncio.TimeoutError:
            self._watch_late_write(command, task)
            return PersistenceError(f"No response from the server after {self.timeout:g}s")
        except asyncio.CancelledError:
            if task is not None:
                task.cancel()
            raise
        except PersistenceError as e:
            return e
        except Exception as e:
            logger.exception(f"❌ Booking store raised for {command.booking_id}")
            return PersistenceError(str(e) or e.__class__.__name__)
        return None

    def _watch_late_write(self, command: MutationCommand, task: asyncio.Future) -> None:
        command.late_write = task
        self._late[command.booking_id] = task
        task.add_done_callback(lambda done: self._late_write_settled(command, done))

    def _late_write_settled(self, command: MutationCommand, task: asyncio.Future) -> None:
        booking_id = command.booking_id
        if self._late.get(booking_id) is task:
            del self._late[booking_id]

        try:
            if task.cancelled():
                return
            error = task.exception()
            if error is not None:
                logger.warning(f"⚠️ Timed-out write for booking {booking_id} failed later: {error}")
                return

            reapplied = command.reapply(self.board)
            self._hand_over(command, command.after)
            logger.warning(f"⚠️ Timed-out write for booking {booking_id} landed late; re-applied {sorted(reapplied)}")
            if reapplied:
                self.context.notifier.info("Booking saved after a delay")
        finally:
            self._forget(command)

    def _hand_over(self, command: MutationCommand, values: dict) -> None:
        """Make ``values`` the snapshot of the next pending command touching each field"""
        pending = self._pending.get(command.booking_id, [])
        if command not in pending:
            return

        remaining = dict(values)
        for follower in pending[pending.index(command) + 1 :]:
            for field in list(remaining):
                if field in follower.before:
                    follower.before[field] = remaining.pop(field)
            if not remaining:
                break

    def _forget(self, command: MutationCommand) -> None:
        pending = self._pending.get(command.booking_id)
        if pending and command in pending:
            pending.remove(command)
            if not pending:
                del self._pending[command.booking_id]

    def _settle(self, booking_id: str) -> None:
        remaining = self.in_flight.get(booking_id, 1) - 1
        if remaining > 0:
            self.in_flight[booking_id] = remaining
            return
        self.in_flight.pop(booking_id, None)
        self._locks.pop(booking_id, None)

    def _reject(self, booking_id: str, error: DispatchError) -> MutationOutcome:
        if isinstance(error, ConflictError):
            self.context.notifier.conflict(error.reason)
        else:
            self.context.notifier.error(error.reason)
        logger.warning(f"⚠️ Booking {booking_id} edit rejected: {error.reason}")
        return MutationOutcome.rejected(booking_id, error)


def _verb(request) -> str:
    return "moved" if isinstance(request, MoveRequest) else "resized"


_SUCCESS_MESSAGES = {"moved": "Booking moved", "resized": "Duration updated"}
_FAILURE_MESSAGES = {"moved": "Could not move booking", "resized": "Could not resize booking"}
