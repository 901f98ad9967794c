"""
Program schedule resolution.

Progress cursors store indices into the sorted schedule, not the stored
week_number/day_of_week values, so schedules with gaps (weeks 1, 3, 4 or
days 0, 2, 5) resolve without any renumbering.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


ScheduleEntry = Dict[str, Any]


@dataclass
class ScheduleStructure:
    week_numbers: List[int] = field(default_factory=list)
    days_by_week: Dict[int, List[ScheduleEntry]] = field(default_factory=dict)

    @property
    def total_weeks(self) -> int:
        return len(self.week_numbers)

    def days_in_week(self, week_number: int) -> List[ScheduleEntry]:
        return self.days_by_week.get(week_number, [])


def build_structure(rows: List[ScheduleEntry]) -> ScheduleStructure:
    week_numbers = sorted({row["week_number"] for row in rows})
    days_by_week = {
        week_number: sorted(
            (row for row in rows if row["week_number"] == week_number),
            key=lambda row: row["day_of_week"],
        )
        for week_number in week_numbers
    }
    return ScheduleStructure(week_numbers=week_numbers, days_by_week=days_by_week)


def resolve(structure: ScheduleStructure, week_index: int, day_index: int) -> Optional[ScheduleEntry]:
    """Entry at the (week_index, day_index) cursor, or None when either index is out of range."""
    if week_index < 0 or week_index >= len(structure.week_numbers):
        return None
    days = structure.days_in_week(structure.week_numbers[week_index])
    if day_index < 0 or day_index >= len(days):
        return None
    return days[day_index]


def week_label(entry: ScheduleEntry) -> str:
    return f"Week {entry['week_number']}"


def day_position(structure: ScheduleStructure, entry: ScheduleEntry) -> int:
    days = structure.days_in_week(entry["week_number"])
    for index, day in enumerate(days):
        if day is entry or (day.get("id") is not None and day.get("id") == entry.get("id")):
            return index + 1
    # entry not taken from this structure; match on the stored day value
    for index, day in enumerate(days):
        if day["day_of_week"] == entry["day_of_week"]:
            return index + 1
    return 0


def day_label(structure: ScheduleStructure, entry: ScheduleEntry) -> str:
    return f"Day {day_position(structure, entry)}"


def position_label(structure: ScheduleStructure, entry: ScheduleEntry) -> str:
    return f"{week_label(entry)} • {day_label(structure, entry)}"


def advance(structure: ScheduleStructure, week_index: int, day_index: int) -> Tuple[int, int, bool]:
    """
    Cursor after completing (week_index, day_index): the next day of the week,
    else the first day of the next week. Completing the final day returns the
    same cursor with is_completed=True.
    """
    days = structure.days_in_week(structure.week_numbers[week_index])
    if day_index + 1 < len(days):
        return week_index, day_index + 1, False
    if week_index + 1 < len(structure.week_numbers):
        return week_index + 1, 0, False
    return week_index, day_index, True
