#!/usr/bin/env python3
"""
NTP Clock Sync
Fetches the current time from an NTP server, shifts it by a UTC offset and
writes the result into the system clock.
"""

import os
import sys

import click

from civil_time import to_civil
from clock_setter import DryRunClockSetter, default_clock_setter
from ntp_client import DEFAULT_TIMEOUT, fetch_time
from sync_errors import ClockSetError, NetworkError, NtpSyncError
from utc_offset import UTC, parse_timezone

DEFAULT_SERVER = 'time.windows.com:123'


def get_timezone_offset(cli_zone=None):
    """
    Get the UTC offset from CLI argument or environment variable.
    Priority: CLI argument > Environment variable > UTC+0
    Returns a TimezoneOffset.
    """
    if cli_zone:
        return parse_timezone(cli_zone)

    env_zone = os.environ.get('NTP_ZONE')
    if env_zone:
        return parse_timezone(env_zone)

    return UTC


def fetch_with_fallback(server, default_server, timeout=DEFAULT_TIMEOUT, verbose=False):
    """
    Fetch Unix seconds from server, trying default_server once if that fails.

    Returns:
        (unix_seconds, server that answered)

    Raises:
        NetworkError: both servers failed.
    """
    if verbose:
        click.echo(f"Querying {server}...", err=True)
    try:
        return fetch_time(server, timeout), server
    except NetworkError as exc:
        click.echo(f"Failed to get time from {server} ({exc.message}), "
                   f"trying {default_server}", err=True)

    try:
        return fetch_time(default_server, timeout), default_server
    except NetworkError as exc:
        raise NetworkError(
            f"Failed to get time from default server {default_server}: {exc.message}"
        ) from exc


def synchronize(server, offset, default_server, clock_setter,
                timeout=DEFAULT_TIMEOUT, verbose=False):
    """
    Run one synchronization: fetch, apply the UTC offset, set the clock.

    Args:
        server: "host:port" of the NTP server to ask first.
        offset: TimezoneOffset added to the fetched time.
        default_server: Server asked when the first one fails.
        clock_setter: ClockSetter that receives the computed time.
        timeout: Receive timeout per server, in seconds.

    Returns:
        The CivilDateTime handed to the clock setter.
    """
    ntp_time, used_server = fetch_with_fallback(server, default_server, timeout, verbose)
    if verbose:
        click.echo(f"Received NTP time {ntp_time} from {used_server}", err=True)

    total_seconds = ntp_time + offset.total_seconds
    if total_seconds < 0:
        raise NtpSyncError(f"offset {offset} moves the time before 1970-01-01")

    civil = to_civil(total_seconds)
    clock_setter.set_time(civil)
    return civil


@click.command()
@click.option('--server', '-s', envvar='NTP_SERVER', default=DEFAULT_SERVER,
              show_default=True,
              help='NTP server as host:port. Overrides NTP_SERVER environment variable.')
@click.option('--zone', '-z', 'zone',
              help='UTC offset in the form UTC±H:M (e.g. "UTC+5:30"). '
                   'Overrides NTP_ZONE environment variable.')
@click.option('--fallback-server', envvar='NTP_FALLBACK_SERVER', default=DEFAULT_SERVER,
              show_default=True,
              help='Server asked when --server does not answer.')
@click.option('--timeout', '-t', envvar='NTP_TIMEOUT', default=DEFAULT_TIMEOUT,
              type=click.FloatRange(min=0, min_open=True), show_default=True,
              help='Seconds to wait for each server to answer.')
@click.option('--dry-run', is_flag=True,
              help='Print the synchronized time without changing the system clock.')
@click.option('--verbose', '-v', is_flag=True, help='Report progress on stderr.')
@click.pass_context
def main(ctx, server, zone, fallback_server, timeout, dry_run, verbose):
    """
    NTP Clock Sync

    Sets the system clock from an NTP server, shifted by a UTC offset.
    Setting the clock usually requires root/administrator privileges.
    """
    try:
        offset = get_timezone_offset(zone)
        clock_setter = DryRunClockSetter() if dry_run else default_clock_setter()
        civil = synchronize(server, offset, fallback_server, clock_setter,
                            timeout=timeout, verbose=verbose)
    except ClockSetError as exc:
        click.echo(f"Failed to set system time: {exc.message}", err=True)
        ctx.exit(1)
    except NtpSyncError as exc:
        click.echo(str(exc), err=True)
        ctx.exit(1)

    suffix = ' (dry run, clock not changed)' if dry_run else ''
    click.echo(f"Synchronized date and time ({offset}): {civil}{suffix}")


def run(args=None):
    """
    Console entry point. Usage errors exit with status 1, like every other
    failure.
    """
    try:
        rv = main.main(args=args, prog_name='ntp-sync', standalone_mode=False)
    except click.UsageError as exc:
        ctx = exc.ctx or click.Context(main, info_name='ntp-sync')
        click.echo(ctx.get_usage(), err=True)
        click.echo("Try 'ntp-sync --help' for help.\n", err=True)
        click.echo(f"Error: {exc.format_message()}", err=True)
        sys.exit(1)
    except click.ClickException as exc:
        exc.show()
        sys.exit(1)
    except click.Abort:
        click.echo('Aborted!', err=True)
        sys.exit(1)
    sys.exit(rv or 0)


if __name__ == '__main__':
    run()
