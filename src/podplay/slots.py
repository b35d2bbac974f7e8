"""
Time helpers and bookable slot generation.
"""
import datetime
import logging
from typing import List, Optional

from podplay.models import ScheduleDay, TimeSlot, TimeWindow

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def parse_time(time_str: str) -> datetime.time:
    return datetime.datetime.strptime(time_str, '%H:%M').time()


def time_to_minutes(time_str: str, end_of_range: bool = False) -> int:
    """
    Minutes since midnight for an HH:MM string.

    When the value closes a range, 00:00 means the end of the day (1440).
    """
    parsed = parse_time(time_str)
    minutes = parsed.hour * 60 + parsed.minute
    if end_of_range and minutes == 0:
        return MINUTES_PER_DAY
    return minutes


def minutes_to_time(minutes: int) -> str:
    if minutes >= MINUTES_PER_DAY:
        return "00:00"
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def calculate_end_time(start_time: str, match_duration_minutes: int) -> str:
    return minutes_to_time(time_to_minutes(start_time) + match_duration_minutes)


def slot_in_window(slot: TimeSlot, window: TimeWindow) -> bool:
    """True when the whole slot lies inside the window on the same date."""
    if slot.date != window.date:
        return False
    window_start = time_to_minutes(window.start_time)
    window_end = time_to_minutes(window.end_time, end_of_range=True)
    return window_start <= slot.start_minutes and slot.end_minutes <= window_end


def generate_time_slots(days: List[ScheduleDay], match_duration_minutes: int, num_courts: int,
                        availability_windows: Optional[List[TimeWindow]] = None) -> List[TimeSlot]:
    """
    Step through each day in match-duration increments, emitting one slot per court.

    If availability windows are given, a time is kept only when it lies fully
    inside at least one of them.
    """
    if match_duration_minutes <= 0:
        raise ValueError(f"Match duration must be positive, got {match_duration_minutes}")
    if num_courts < 0:
        raise ValueError(f"Number of courts cannot be negative, got {num_courts}")

    slots = []
    for day in days:
        day_start = time_to_minutes(day.start_time)
        day_end = time_to_minutes(day.end_time, end_of_range=True)

        current = day_start
        while current + match_duration_minutes <= day_end:
            slot_end = current + match_duration_minutes
            start_str = minutes_to_time(current)
            end_str = minutes_to_time(slot_end)
            current += match_duration_minutes

            if availability_windows:
                probe = TimeSlot(day.date, start_str, end_str, slot_end - match_duration_minutes, slot_end, -1)
                if not any(slot_in_window(probe, window) for window in availability_windows):
                    continue

            for _ in range(num_courts):
                slots.append(TimeSlot(day.date, start_str, end_str,
                                      slot_end - match_duration_minutes, slot_end, len(slots)))

    logger.debug("Generated %d slots over %d day(s) for %d court(s)", len(slots), len(days), num_courts)
    return slots
