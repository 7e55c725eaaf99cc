"""
Writing a civil date/time into the host clock.

Each platform gets its own ClockSetter; default_clock_setter() picks the
one matching the running system.
"""

import platform
import subprocess
from abc import ABC, abstractmethod

from sync_errors import ClockSetError


class ClockSetter(ABC):
    @abstractmethod
    def set_time(self, civil):
        """Apply a CivilDateTime to the system clock or raise ClockSetError."""


def _run(args, failure_message):
    try:
        result = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        raise ClockSetError(f"{failure_message}: {exc}") from exc

    if result.returncode != 0:
        detail = result.stderr.strip()
        if detail:
            raise ClockSetError(f"{failure_message}: {detail}")
        raise ClockSetError(failure_message)


class UnixClockSetter(ClockSetter):
    """Sets the clock with `date -s "YYYY-MM-DD HH:MM:SS"` (needs root)."""

    def set_time(self, civil):
        _run(['date', '-s', civil.isoformat()], "Failed to set date and time")


class WindowsClockSetter(ClockSetter):
    """Sets the clock through the cmd.exe `date` and `time` builtins."""

    def set_time(self, civil):
        date_str = f"{civil.month:02d}-{civil.day:02d}-{civil.year:04d}"
        time_str = f"{civil.hour:02d}:{civil.minute:02d}:{civil.second:02d}"

        _run(['cmd', '/C', 'date', date_str], "Failed to set date")
        _run(['cmd', '/C', 'time', time_str], "Failed to set time")


class DryRunClockSetter(ClockSetter):
    """Leaves the clock alone and remembers what it was asked to set."""

    def __init__(self):
        self.applied = []

    def set_time(self, civil):
        self.applied.append(civil)


def default_clock_setter(system=None):
    """
    Return the ClockSetter for the given platform.system() name,
    defaulting to the running system.
    """
    system = (system or platform.system()).lower()
    if system == 'windows':
        return WindowsClockSetter()
    if system in ('linux', 'darwin'):
        return UnixClockSetter()
    raise ClockSetError(f"setting the system clock is not supported on {system}")
