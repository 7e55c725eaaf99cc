"""
Calendar arithmetic between Unix epoch seconds and civil date/time.

Everything here is pure: a proleptic Gregorian walk starting at
1970-01-01T00:00:00, no time zones, no leap seconds.
"""

from collections import namedtuple

EPOCH_YEAR = 1970

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

# One full Gregorian cycle: 400 years, 97 of them leap
DAYS_PER_400_YEARS = 146097

_LONG_MONTHS = (1, 3, 5, 7, 8, 10, 12)
_SHORT_MONTHS = (4, 6, 9, 11)


class CivilDateTime(namedtuple('CivilDateTime',
                               'year month day hour minute second')):
    __slots__ = ()

    def isoformat(self, sep=' '):
        """Format as YYYY-MM-DD HH:MM:SS (or with a custom separator)."""
        return (f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
                f"{sep}{self.hour:02d}:{self.minute:02d}:{self.second:02d}")

    def __str__(self):
        return self.isoformat()


def is_leap_year(year):
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_year(year):
    return 366 if is_leap_year(year) else 365


def days_in_month(month, year):
    """
    Number of days in the given month of the given year.

    Returns 0 for a month outside 1-12.
    """
    if month in _LONG_MONTHS:
        return 31
    if month in _SHORT_MONTHS:
        return 30
    if month == 2:
        return 29 if is_leap_year(year) else 28
    return 0


def to_civil(total_seconds):
    """
    Convert seconds since the Unix epoch to a CivilDateTime.

    Args:
        total_seconds: Non-negative integer count of seconds since
            1970-01-01T00:00:00.

    Returns:
        CivilDateTime for that instant.
    """
    if total_seconds < 0:
        raise ValueError(f"seconds since epoch must be non-negative: {total_seconds}")

    days, seconds_today = divmod(total_seconds, SECONDS_PER_DAY)

    hour = seconds_today // SECONDS_PER_HOUR
    minute = (seconds_today % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE
    second = seconds_today % SECONDS_PER_MINUTE

    # Skip whole 400-year cycles first; the walk below handles the rest
    cycles, days = divmod(days, DAYS_PER_400_YEARS)
    year = EPOCH_YEAR + cycles * 400

    while days >= days_in_year(year):
        days -= days_in_year(year)
        year += 1

    month = 1
    while days >= days_in_month(month, year):
        days -= days_in_month(month, year)
        month += 1

    return CivilDateTime(year, month, days + 1, hour, minute, second)


def to_epoch(civil):
    """Inverse of to_civil: seconds since the Unix epoch for a CivilDateTime."""
    year, month, day, hour, minute, second = civil
    if year < EPOCH_YEAR:
        raise ValueError(f"year before {EPOCH_YEAR}: {year}")
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    if not 1 <= day <= days_in_month(month, year):
        raise ValueError(f"day out of range: {year:04d}-{month:02d}-{day:02d}")

    cycles, year_in_cycle = divmod(year - EPOCH_YEAR, 400)
    days = cycles * DAYS_PER_400_YEARS
    for y in range(year - year_in_cycle, year):
        days += days_in_year(y)
    for m in range(1, month):
        days += days_in_month(m, year)
    days += day - 1

    return (days * SECONDS_PER_DAY + hour * SECONDS_PER_HOUR
            + minute * SECONDS_PER_MINUTE + second)
