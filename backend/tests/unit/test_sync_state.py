"""Unit tests for the SyncState aggregate."""

from datetime import datetime, timedelta, timezone

from app.domain.entities import HISTORY_LIMIT, PendingChange, SyncHistoryEntry, SyncState

T0 = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _change(minutes: int, applied: bool = False) -> PendingChange:
    created = T0 + timedelta(minutes=minutes)
    return PendingChange(
        kind="block",
        payload={"type": "block", "n": minutes},
        created_at=created,
        scheduled_for=created + timedelta(hours=12),
        applied=applied,
    )


def test_history_is_capped_and_keeps_the_newest_entries():
    state = SyncState()
    for i in range(HISTORY_LIMIT + 37):
        state.record_history(
            SyncHistoryEntry(kind=f"k{i}", source="website", target="admin_panel", timestamp=T0 + timedelta(seconds=i))
        )

    assert len(state.sync_history) == HISTORY_LIMIT
    assert state.sync_history[0].kind == "k37"
    assert state.sync_history[-1].kind == f"k{HISTORY_LIMIT + 36}"
    stamps = [e.timestamp for e in state.sync_history]
    assert stamps == sorted(stamps)


def test_unapplied_changes_keep_staging_order():
    state = SyncState()
    first, done, last = _change(1), _change(2, applied=True), _change(3)
    for change in (first, done, last):
        state.add_pending(change)

    assert state.unapplied_changes() == [first, last]
    assert state.pending_count == 2


def test_pending_change_ids_are_unique_within_one_millisecond():
    ids = {_change(0).id for _ in range(50)}
    assert len(ids) == 50


def test_summary_reports_only_unapplied_changes():
    state = SyncState(last_sync=T0)
    state.add_pending(_change(1))
    state.add_pending(_change(2, applied=True))

    summary = state.to_summary()

    assert summary == {
        "lastBackup": None,
        "lastSync": T0.isoformat(),
        "pendingChangesCount": 1,
    }
