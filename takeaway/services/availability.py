"""
Store Availability Calculator

Answers "is the store open right now?" and "which collection/delivery times
can a customer book on this date?" from the opening-hours table, holiday
closures and the store's lead-time/buffer settings.

The calculator functions are pure: callers pass an explicit, store-local
``now`` so that results do not depend on the server clock or timezone.
``AvailabilityService`` wires them to a ConfigStore.

Conventions:
    - day_of_week: 0 = Sunday ... 6 = Saturday
    - times are wall-clock minutes; public values are ``HH:MM`` strings
    - a session whose close time is earlier than its open time runs past
      midnight (e.g. 16:00-00:00)
    - holiday windows are closed periods, inclusive at both ends
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

if TYPE_CHECKING:
    from takeaway.services.config_store.base import BaseConfigStore

logger = logging.getLogger(__name__)

SLOT_INTERVAL_MINUTES = 15
MINUTES_PER_DAY = 24 * 60

ClockValue = Union[str, time]


# =============================================================================
# TIME HELPERS
# =============================================================================

def parse_clock(value: ClockValue) -> time:
    """
    Parse ``HH:MM`` or ``HH:MM:SS`` (as stored by Postgres TIME columns).

    Raises:
        ValueError: If the value is not a wall-clock time
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise ValueError(f"Invalid time value: {value!r}")
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time value: {value!r}")
    return time(int(parts[0]), int(parts[1]))


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(on_date: date) -> int:
    """Weekday number with Sunday as 0."""
    return on_date.isoweekday() % 7


# =============================================================================
# TYPES
# =============================================================================

@dataclass(frozen=True)
class OpeningHoursEntry:
    """One trading session on a weekday."""
    day_of_week: int
    open_time: time
    close_time: time
    is_closed: bool = False

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be 0-6, got {self.day_of_week}")

    @property
    def crosses_midnight(self) -> bool:
        return self.close_time < self.open_time

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OpeningHoursEntry":
        return cls(
            day_of_week=int(data["day_of_week"]),
            open_time=parse_clock(data["open_time"]),
            close_time=parse_clock(data["close_time"]),
            is_closed=bool(data.get("is_closed", False)),
        )

    def to_dict(self) -> dict:
        return {
            "day_of_week": self.day_of_week,
            "open_time": self.open_time.strftime("%H:%M"),
            "close_time": self.close_time.strftime("%H:%M"),
            "is_closed": self.is_closed,
        }


@dataclass(frozen=True)
class Holiday:
    """A closed window on a specific date."""
    date: date
    start_time: time
    end_time: time
    description: Optional[str] = None

    def covers(self, minutes: int) -> bool:
        return to_minutes(self.start_time) <= minutes <= to_minutes(self.end_time)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Holiday":
        raw_date = data.get("holiday_date", data.get("date"))
        return cls(
            date=raw_date if isinstance(raw_date, date) else date.fromisoformat(raw_date),
            start_time=parse_clock(data["start_time"]),
            end_time=parse_clock(data["end_time"]),
            description=data.get("description"),
        )

    def to_dict(self) -> dict:
        return {
            "holiday_date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "description": self.description,
        }


@dataclass
class StoreStatus:
    """Result of an is-open check."""
    is_open: bool
    reason: str
    current_time: Optional[str] = None
    day_of_week: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "is_open": self.is_open,
            "reason": self.reason,
            "current_time": self.current_time,
            "day_of_week": self.day_of_week,
        }


@dataclass
class SlotResult:
    """Bookable times for one date, plus why the list is empty (if known)."""
    available_times: list[str] = field(default_factory=list)
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {"available_times": self.available_times, "reason": self.reason}


# =============================================================================
# CALCULATOR
# =============================================================================

def _closed_windows(holidays: Iterable[Holiday], on_date: date) -> list[Holiday]:
    return [h for h in holidays if h.date == on_date]


def _session_contains(entry: OpeningHoursEntry, minutes: int) -> bool:
    opens = to_minutes(entry.open_time)
    closes = to_minutes(entry.close_time)
    if closes < opens:
        return minutes >= opens or minutes <= closes
    return opens <= minutes <= closes


def is_open_now(
    hours: Iterable[OpeningHoursEntry],
    holidays: Iterable[Holiday],
    now: datetime,
) -> StoreStatus:
    """
    Decide whether the store is trading at ``now``.

    A holiday window covering the current time closes the store. Holidays
    on the same date that do not cover it leave normal hours in force.

    Args:
        hours: Opening-hours entries (any weekday; filtered here)
        holidays: Holiday windows (any date; filtered here)
        now: Store-local current time

    Returns:
        StoreStatus: open flag, reason, and the time/day that were checked
    """
    today = now.date()
    weekday = day_of_week(today)
    minutes = now.hour * 60 + now.minute
    current_time = format_minutes(minutes)

    if any(h.covers(minutes) for h in _closed_windows(holidays, today)):
        return StoreStatus(False, "Holiday", current_time, weekday)

    sessions = [e for e in hours if e.day_of_week == weekday and not e.is_closed]
    if not sessions:
        return StoreStatus(False, "No opening hours set", current_time, weekday)

    is_open = any(_session_contains(e, minutes) for e in sessions)
    return StoreStatus(
        is_open,
        "Open" if is_open else "Outside opening hours",
        current_time,
        weekday,
    )


def available_slots(
    hours: Iterable[OpeningHoursEntry],
    holidays: Iterable[Holiday],
    on_date: date,
    lead_time_minutes: int,
    buffer_minutes: int,
    now: datetime,
) -> SlotResult:
    """
    Enumerate bookable quarter-hour times on ``on_date``.

    For every open session the window runs from opening time (pushed back
    to ``now + lead_time_minutes`` when ``on_date`` is today) up to, but not
    including, ``close - buffer_minutes``. Times inside a holiday window are
    dropped. Sessions running past midnight only contribute times up to
    midnight; the rest belongs to the next day.

    Args:
        hours: Opening-hours entries (any weekday; filtered here)
        holidays: Holiday windows (any date; filtered here)
        on_date: Date being booked
        lead_time_minutes: Minimum minutes between now and the first slot
        buffer_minutes: Minutes before closing with no further slots
        now: Store-local current time

    Returns:
        SlotResult: ascending ``HH:MM`` strings without duplicates
    """
    weekday = day_of_week(on_date)
    sessions = [e for e in hours if e.day_of_week == weekday and not e.is_closed]
    if not sessions:
        return SlotResult([], "Closed on this day")

    if on_date < now.date():
        return SlotResult([], "Date is in the past")

    closed = _closed_windows(holidays, on_date)
    is_today = on_date == now.date()
    earliest_today = now.hour * 60 + now.minute + lead_time_minutes

    slots: set[int] = set()
    for entry in sessions:
        start = to_minutes(entry.open_time)
        close = to_minutes(entry.close_time)
        if close <= start:
            close += MINUTES_PER_DAY
        end = min(close - buffer_minutes, MINUTES_PER_DAY)

        if is_today:
            start = max(start, earliest_today)

        # Round up to the next quarter-hour boundary
        first = -(-start // SLOT_INTERVAL_MINUTES) * SLOT_INTERVAL_MINUTES
        for t in range(first, end, SLOT_INTERVAL_MINUTES):
            if not any(h.covers(t) for h in closed):
                slots.add(t)

    return SlotResult([format_minutes(t) for t in sorted(slots)])


# =============================================================================
# SERVICE
# =============================================================================

class AvailabilityService:
    """
    Availability queries backed by a ConfigStore.

    Every method returns a result object; store lookup failures are logged
    and reported as closed / no times.

    Example:
        >>> service = AvailabilityService(get_config_store(), "default")
        >>> status = await service.is_open_now(store_now())
        >>> slots = await service.available_collection_times(date.today(), store_now())
    """

    def __init__(self, config_store: "BaseConfigStore", store_id: str = "default"):
        self.config_store = config_store
        self.store_id = store_id

    async def is_open_now(self, now: datetime) -> StoreStatus:
        try:
            hours = await self.config_store.get_opening_hours(day_of_week(now.date()))
            holidays = await self.config_store.get_holidays(now.date())
        except Exception as e:
            logger.exception(f"Failed to load store hours: {e}")
            return StoreStatus(False, "Unable to determine opening hours")
        return is_open_now(hours, holidays, now)

    async def _slots(self, on_date: date, now: datetime, mode: str) -> SlotResult:
        try:
            config = await self.config_store.get_store_config(self.store_id)
            if config is None:
                return SlotResult([], "Store configuration not found")

            if mode == "collection":
                lead, buffer = config.collection_lead_time_minutes, config.collection_buffer_minutes
            else:
                lead, buffer = config.delivery_lead_time_minutes, config.delivery_buffer_minutes

            hours = await self.config_store.get_opening_hours(day_of_week(on_date))
            holidays = await self.config_store.get_holidays(on_date)
        except Exception as e:
            logger.exception(f"Failed to load {mode} availability for {on_date}: {e}")
            return SlotResult([], "Unable to load store hours")

        return available_slots(hours, holidays, on_date, lead, buffer, now)

    async def available_collection_times(self, on_date: date, now: datetime) -> SlotResult:
        """Collection slots using the collection lead time and buffer."""
        return await self._slots(on_date, now, "collection")

    async def available_delivery_times(
        self,
        on_date: date,
        postcode: Optional[str],
        now: datetime,
    ) -> SlotResult:
        """Delivery slots using the delivery lead time and buffer."""
        if not postcode or not postcode.strip():
            return SlotResult([], "Postcode is required for delivery times")
        return await self._slots(on_date, now, "delivery")
