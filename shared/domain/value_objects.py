"""
Common Value Objects

Value objects used across the booking engine:
- DateRange: Represents a half-open stay period (check-in to check-out)
"""

from dataclasses import dataclass
from datetime import date

from shared.domain.base import ValueObject


def ranges_overlap(start_a, end_a, start_b, end_b) -> bool:
    """
    Decide whether two half-open ranges intersect.

    Ranges that only touch (one's end equals the other's start) do not
    overlap, so a checkout and a checkin may share a calendar day.
    Works for dates and datetimes alike.
    """
    return start_a < end_b and end_a > start_b


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    Used for booking periods, availability checks, etc.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Examples:
            - DateRange(10, 12) overlaps with DateRange(11, 13) -> True
            - DateRange(10, 12) overlaps with DateRange(12, 14) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        return ranges_overlap(self.start_date, self.end_date, other.start_date, other.end_date)

    def contains(self, check_date: date) -> bool:
        """start_date is inclusive, end_date is exclusive"""
        return self.start_date <= check_date < self.end_date

    def __len__(self) -> int:
        """Number of nights in this range"""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
