"""
Parsing of UTC offset specifiers such as "UTC+5:30" or "UTC-8:0".
"""

import re
from collections import namedtuple

from sync_errors import FormatError

PREFIX = 'UTC'

# Signed decimal integer: optional sign, then digits only
_INTEGER_RE = re.compile(r'[+-]?[0-9]+')


class TimezoneOffset(namedtuple('TimezoneOffset', 'hours minutes')):
    __slots__ = ()

    @property
    def total_seconds(self):
        return self.hours * 3600 + self.minutes * 60

    def __str__(self):
        text = f"{PREFIX}{self.hours:+d}"
        if self.minutes:
            text += f":{self.minutes:02d}"
        return text


UTC = TimezoneOffset(0, 0)


def _parse_int(text):
    if not _INTEGER_RE.fullmatch(text):
        raise ValueError(text)
    return int(text)


def parse_timezone(text):
    """
    Parse a "UTC±H:M" specifier into a TimezoneOffset.

    The sign applies to the hours only. Minutes are taken as written, so
    "UTC-5:30" gives (-5, 30). Magnitudes are not range checked.
    """
    if not text.startswith(PREFIX):
        raise FormatError("must start with UTC")

    rest = text[len(PREFIX):]
    if rest[:1] == '+':
        sign = 1
    elif rest[:1] == '-':
        sign = -1
    else:
        raise FormatError("must be in the format UTC±H:M")

    hours_field, _, minutes_field = rest[1:].partition(':')

    try:
        hours = _parse_int(hours_field) * sign
    except ValueError:
        raise FormatError("invalid hours") from None

    try:
        minutes = _parse_int(minutes_field)
    except ValueError:
        raise FormatError("invalid minutes") from None

    return TimezoneOffset(hours, minutes)
