"""Tests for queue replay and mirror refresh."""
import threading

import pytest
from sqlalchemy import create_engine

from whatnext.core.errors import SyncInProgressError
from whatnext.datasources.base import Activity
from whatnext.datasources.remote import RemoteActivityStore
from whatnext.models.sync_queue import QueueOperation
from whatnext.services.sync_manager import (
    BLOCKED_REASON,
    SKIP_REASON_EXISTS,
    SKIP_REASON_GONE,
    SyncManager,
)


@pytest.fixture()
def manager(remote_store, local_store):
    return SyncManager(remote_store, local_store)


class TestPushQueue:
    def test_add_then_adjust_lands_remotely(self, manager, remote_store, local_store):
        local_store.add("x", 1.0)
        local_store.set_priority("x", 1.2)

        result = manager.full_sync()

        assert result.success_count == 2
        assert result.failed_count == 0
        assert remote_store.get("x") == Activity("x", 1.2)
        assert not local_store.has_pending_entries()

    def test_duplicate_add_is_skipped_and_dequeued(self, manager, remote_store, local_store):
        remote_store.add("read", 3.0)
        local_store.add("read", 1.0)

        result = manager.push_queue()

        assert (result.success_count, result.skipped_count, result.failed_count) == (0, 1, 0)
        assert result.issues[0].error == SKIP_REASON_EXISTS
        assert result.issues[0].severity == "warning"
        assert remote_store.get("read").priority == 3.0
        assert local_store.pending_count() == 0

    def test_adjust_on_missing_remote_is_skipped(self, manager, local_store):
        local_store.append_queue_entry(QueueOperation.ADJUST, "vanished", 0.5)

        result = manager.push_queue()

        assert result.skipped_count == 1
        assert result.issues[0].error == SKIP_REASON_GONE
        assert local_store.pending_count() == 0

    def test_delete_is_idempotent(self, manager, remote_store, local_store):
        remote_store.add("present", 1.0)
        local_store.append_queue_entry(QueueOperation.DELETE, "present", None)
        local_store.append_queue_entry(QueueOperation.DELETE, "absent", None)

        result = manager.push_queue()

        assert result.success_count == 2
        assert remote_store.get("present") is None

    def test_adjust_clamps_and_rounds_against_remote_value(self, manager, remote_store, local_store):
        remote_store.add("a", 0.15)
        remote_store.add("b", 1.0)
        local_store.append_queue_entry(QueueOperation.ADJUST, "a", -0.5)
        local_store.append_queue_entry(QueueOperation.ADJUST, "b", 0.10000000000000009)

        manager.push_queue()

        assert remote_store.get("a").priority == 0.1
        assert remote_store.get("b").priority == 1.1

    def test_failed_entry_is_retained_others_continue(self, manager, remote_store, local_store):
        remote_store.failing_adds.add("flaky")
        local_store.add("flaky", 1.0)
        local_store.add("fine", 2.0)

        result = manager.push_queue()

        assert result.success_count == 1
        assert result.failed_count == 1
        assert result.issues[0].severity == "error"
        assert remote_store.get("fine") == Activity("fine", 2.0)
        remaining = local_store.drain_queue_ordered()
        assert [(e.operation, e.activity) for e in remaining] == [(QueueOperation.ADD, "flaky")]

    def test_failure_holds_back_later_entries_for_same_name(self, manager, remote_store, local_store):
        remote_store.failing_adds.add("x")
        local_store.add("x", 1.0)
        local_store.set_priority("x", 1.5)

        result = manager.push_queue()

        assert result.failed_count == 2
        assert result.issues[1].error == BLOCKED_REASON
        assert [e.operation for e in local_store.drain_queue_ordered()] == [
            QueueOperation.ADD,
            QueueOperation.ADJUST,
        ]

        # Retry once the remote accepts the add: order is preserved
        remote_store.failing_adds.clear()
        retry = manager.push_queue()
        assert retry.success_count == 2
        assert remote_store.get("x") == Activity("x", 1.5)
        assert local_store.pending_count() == 0

    def test_unknown_operation_fails(self, manager, local_store):
        local_store.append_queue_entry("RENAME_ACTIVITY", "x", None)
        result = manager.push_queue()
        assert result.failed_count == 1
        assert "Unknown operation" in result.issues[0].error
        assert local_store.pending_count() == 1

    def test_constraint_failure_on_add_fails_and_stays_queued(self, tmp_path, local_store):
        engine = create_engine(f"sqlite:///{tmp_path / 'drifted.db'}")
        with engine.begin() as conn:
            conn.exec_driver_sql(
                "CREATE TABLE t_activity ("
                "activity VARCHAR(255) PRIMARY KEY, priority DOUBLE NOT NULL, owner VARCHAR(64) NOT NULL)"
            )
        remote = RemoteActivityStore(engine)
        local_store.add("x", 1.0)

        result = SyncManager(remote, local_store).push_queue()
        remote.close()

        assert (result.success_count, result.skipped_count, result.failed_count) == (0, 0, 1)
        assert "NOT NULL" in result.issues[0].error
        assert result.issues[0].severity == "error"
        assert local_store.pending_count() == 1

    def test_empty_queue(self, manager):
        result = manager.push_queue()
        assert (result.success_count, result.skipped_count, result.failed_count) == (0, 0, 0)
        assert result.issues == []


class TestPullAndFullSync:
    def test_pull_replaces_mirror(self, manager, remote_store, local_store):
        local_store.replace_snapshot([Activity("stale", 9.0)])
        remote_store.add("fresh", 1.4)

        manager.pull_snapshot()

        assert local_store.list_all() == [Activity("fresh", 1.4)]

    def test_full_sync_merges_queue_then_mirrors(self, manager, remote_store, local_store):
        remote_store.add("remote-only", 2.0)
        local_store.add("offline-add", 1.0)

        result = manager.full_sync()

        assert result.pulled is True
        assert {a.name for a in local_store.list_all()} == {"remote-only", "offline-add"}

    def test_failed_push_still_pulls_by_default(self, manager, remote_store, local_store):
        remote_store.failing_adds.add("pending")
        local_store.add("pending", 1.0)

        result = manager.full_sync()

        assert result.pulled is True
        assert local_store.get("pending") is None
        assert local_store.pending_count() == 1

    def test_failed_push_can_keep_mirror(self, remote_store, local_store):
        manager = SyncManager(remote_store, local_store, pull_after_failed_push=False)
        remote_store.failing_adds.add("pending")
        local_store.add("pending", 1.0)

        result = manager.full_sync()

        assert result.pulled is False
        assert local_store.get("pending") == Activity("pending", 1.0)

    def test_concurrent_sync_is_rejected(self, remote_store, local_store):
        lock = threading.Lock()
        manager = SyncManager(remote_store, local_store, lock=lock)
        lock.acquire()
        try:
            with pytest.raises(SyncInProgressError):
                manager.full_sync()
        finally:
            lock.release()
        manager.full_sync()
        assert not lock.locked()

    def test_result_as_dict(self, manager, local_store):
        local_store.append_queue_entry(QueueOperation.ADJUST, "gone", 0.1)
        data = manager.full_sync().as_dict()
        assert data["skipped_count"] == 1
        assert data["issues"][0]["activity"] == "gone"
        assert data["pulled"] is True

    def test_pending_helpers(self, manager, local_store):
        assert manager.has_pending() is False
        local_store.add("a", 1.0)
        assert manager.pending_count() == 1
