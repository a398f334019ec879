"""Wall-clock schedule arithmetic for the daily backup and release slots.

All functions are pure and operate in the timezone of the ``now`` argument,
so callers decide which zone the daily slots are pinned to.
"""

from datetime import datetime, time, timedelta

BACKUP_AT = time(23, 59)
CUTOVER_AT = time(3, 0)


def latest_occurrence(at: time, now: datetime) -> datetime:
    """Return the most recent occurrence of ``at`` that is not after ``now``."""
    candidate = datetime.combine(now.date(), at, tzinfo=now.tzinfo)
    if candidate > now:
        candidate = datetime.combine(now.date() - timedelta(days=1), at, tzinfo=now.tzinfo)
    return candidate


def next_occurrence(at: time, now: datetime) -> datetime:
    """Return the next occurrence of ``at`` strictly after ``now``."""
    candidate = datetime.combine(now.date(), at, tzinfo=now.tzinfo)
    if candidate <= now:
        candidate = datetime.combine(now.date() + timedelta(days=1), at, tzinfo=now.tzinfo)
    return candidate


def next_cutover(now: datetime, at: time = CUTOVER_AT) -> datetime:
    """Instant at which a change staged at ``now`` will be released."""
    return next_occurrence(at, now)


def schedule_info(
    now: datetime,
    backup_at: time = BACKUP_AT,
    release_at: time = CUTOVER_AT,
) -> dict[str, str]:
    """Upcoming backup and release instants, as sent to clients."""
    return {
        "nextBackup": next_occurrence(backup_at, now).isoformat(),
        "nextSync": next_occurrence(release_at, now).isoformat(),
    }
