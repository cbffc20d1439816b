"""Weekly schedule overlap between a household's needed hours and a provider's availability.

The overlap percentage is the share of needed minutes the provider can
cover. Both schedules are in the same local time; granularity is minutes.
"""

from datetime import time

from pydantic import BaseModel, ConfigDict, Field

from carematch.core.rounding import round_half_up
from carematch.core.schemas import DayWindow, Weekday, WeeklySchedule

DAYS_OF_WEEK: tuple[Weekday, ...] = tuple(Weekday)

_DAY_LABELS: dict[Weekday, str] = {
    Weekday.MONDAY: "Mon",
    Weekday.TUESDAY: "Tue",
    Weekday.WEDNESDAY: "Wed",
    Weekday.THURSDAY: "Thu",
    Weekday.FRIDAY: "Fri",
    Weekday.SATURDAY: "Sat",
    Weekday.SUNDAY: "Sun",
}


class DayOverlap(BaseModel):
    """Overlap detail for a single weekday."""

    model_config = ConfigDict(frozen=True)

    needed_enabled: bool
    available_enabled: bool
    overlap_minutes: int = 0
    needed_minutes: int = 0
    overlap_percentage: int = 100
    needed_start: time | None = None
    needed_end: time | None = None
    available_start: time | None = None
    available_end: time | None = None
    overlap_start: time | None = None
    overlap_end: time | None = None


class ScheduleOverlapResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    overlap_percentage: int = Field(ge=0, le=100)
    total_overlap_minutes: int = 0
    total_needed_minutes: int = 0
    day_breakdown: dict[Weekday, DayOverlap] = Field(default_factory=dict)
    matching_days: tuple[Weekday, ...] = ()
    missing_days: tuple[Weekday, ...] = ()


def _to_minutes(t: time | None) -> int:
    if t is None:
        return 0
    return t.hour * 60 + t.minute


def _to_time(minutes: int) -> time:
    return time(hour=minutes // 60, minute=minutes % 60)


def _percentage(part: int, whole: int) -> int:
    if whole <= 0:
        return 100
    return round_half_up(part / whole * 100)


def _day_overlap(needed: DayWindow | None, available: DayWindow | None) -> DayOverlap:
    needed_enabled = needed is not None and needed.enabled
    available_enabled = available is not None and available.enabled

    # Day not needed: vacuously satisfied
    if not needed_enabled:
        return DayOverlap(needed_enabled=False, available_enabled=available_enabled)

    needed_start = _to_minutes(needed.start)
    needed_end = _to_minutes(needed.end)
    needed_minutes = max(0, needed_end - needed_start)

    if not available_enabled:
        return DayOverlap(
            needed_enabled=True,
            available_enabled=False,
            needed_minutes=needed_minutes,
            overlap_percentage=0,
            needed_start=needed.start,
            needed_end=needed.end,
        )

    available_start = _to_minutes(available.start)
    available_end = _to_minutes(available.end)
    overlap_start = max(needed_start, available_start)
    overlap_end = min(needed_end, available_end)
    overlap_minutes = max(0, overlap_end - overlap_start)

    return DayOverlap(
        needed_enabled=True,
        available_enabled=True,
        overlap_minutes=overlap_minutes,
        needed_minutes=needed_minutes,
        overlap_percentage=_percentage(overlap_minutes, needed_minutes),
        needed_start=needed.start,
        needed_end=needed.end,
        available_start=available.start,
        available_end=available.end,
        overlap_start=_to_time(overlap_start) if overlap_minutes > 0 else None,
        overlap_end=_to_time(overlap_end) if overlap_minutes > 0 else None,
    )


def calculate_schedule_overlap(
    needed: WeeklySchedule | None,
    available: WeeklySchedule | None,
) -> ScheduleOverlapResult:
    """Compute how much of the needed weekly schedule the provider covers.

    Args:
        needed: The household's required schedule. None imposes no constraint.
        available: The provider's availability. None means no day is available.

    Returns:
        ScheduleOverlapResult with the aggregate percentage and per-day detail.
    """
    if needed is None:
        return ScheduleOverlapResult(overlap_percentage=100)

    breakdown: dict[Weekday, DayOverlap] = {}
    matching: list[Weekday] = []
    missing: list[Weekday] = []
    total_overlap = 0
    total_needed = 0

    for day in DAYS_OF_WEEK:
        info = _day_overlap(needed.day(day), available.day(day) if available else None)
        breakdown[day] = info
        total_overlap += info.overlap_minutes
        total_needed += info.needed_minutes

        if info.needed_enabled:
            if info.overlap_minutes > 0:
                matching.append(day)
            else:
                missing.append(day)

    return ScheduleOverlapResult(
        overlap_percentage=_percentage(total_overlap, total_needed),
        total_overlap_minutes=total_overlap,
        total_needed_minutes=total_needed,
        day_breakdown=breakdown,
        matching_days=tuple(matching),
        missing_days=tuple(missing),
    )


def meets_schedule_requirement(
    needed: WeeklySchedule | None,
    available: WeeklySchedule | None,
    min_percent: int = 80,
) -> bool:
    """True if the provider covers at least ``min_percent`` of the needed minutes."""
    return calculate_schedule_overlap(needed, available).overlap_percentage >= min_percent


def is_available_on_all_required_days(
    needed: WeeklySchedule | None,
    available: WeeklySchedule | None,
) -> bool:
    """True if every needed day is enabled on the provider side, ignoring hours."""
    if needed is None:
        return True
    for day in DAYS_OF_WEEK:
        needed_day = needed.day(day)
        available_day = available.day(day) if available else None
        if needed_day is not None and needed_day.enabled:
            if available_day is None or not available_day.enabled:
                return False
    return True


def count_matching_days(
    needed: WeeklySchedule | None,
    available: WeeklySchedule | None,
) -> int:
    return len(calculate_schedule_overlap(needed, available).matching_days)


def format_schedule_overlap_summary(result: ScheduleOverlapResult) -> str:
    """One-line human-readable summary of an overlap result."""
    if result.total_needed_minutes == 0:
        return "No specific schedule requirements"

    total_hours = round(result.total_needed_minutes / 60, 1)
    if result.overlap_percentage == 100:
        return f"Fully available ({total_hours:g}h/week)"
    if result.overlap_percentage == 0:
        return "Not available during the needed hours"

    hours = round(result.total_overlap_minutes / 60, 1)
    summary = f"{result.overlap_percentage}% available ({hours:g}h of {total_hours:g}h/week)"
    if result.missing_days:
        days = ", ".join(_DAY_LABELS[d] for d in result.missing_days)
        summary += f" - unavailable: {days}"
    return summary
