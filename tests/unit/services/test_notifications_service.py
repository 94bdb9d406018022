"""
Tests for NotificationLedger.

Covers:
- Ordering (alarms first, insertion order otherwise)
- Role filtering of alarms
- Viewed-id bookkeeping and unviewed counts
- Persisted unresolved snapshot for the history view
"""

from __future__ import annotations

import json

import pytest

from infrastructure.storage.key_value import InMemoryKeyValueStore
from thermacore.enums.common import NotificationStatus, UserRole
from thermacore.services.application.notifications_service import (
    NOTIFICATIONS_STORAGE_KEY,
    NotificationLedger,
)


class TestOrderingAndRoles:
    def test_alarms_first_then_insertion_order(self, ledger):
        assert [n.id for n in ledger.notifications] == [2, 4, 5, 1, 3]

    def test_admin_sees_every_alarm(self, ledger):
        assert [n.id for n in ledger.visible(UserRole.ADMIN)] == [2, 4, 5, 1, 3]
        assert ledger.visible_count_for("admin") == 5

    def test_user_sees_first_alarm_only(self, ledger):
        assert [n.id for n in ledger.visible(UserRole.USER)] == [2, 1, 3]
        assert ledger.visible_count_for("user") == 3

    def test_unknown_role_is_restricted(self, ledger):
        assert ledger.visible_count_for("guest") == 3
        assert ledger.visible_count_for(None) == 3

    def test_add_keeps_alarm_ordering(self, ledger, make_notification):
        ledger.add(make_notification(9, "alarm"))
        assert [n.id for n in ledger.notifications] == [2, 4, 5, 9, 1, 3]


class TestViewed:
    def test_unviewed_count_starts_at_visible_count(self, ledger):
        assert ledger.unviewed_count("admin") == 5

    def test_mark_all_viewed_is_monotonic(self, ledger):
        before = ledger.mark_all_viewed("user")
        assert before == frozenset({2, 1, 3})
        after = ledger.mark_all_viewed("admin")
        assert before <= after
        assert after == frozenset({1, 2, 3, 4, 5})

    def test_unviewed_count_tracks_new_notifications(self, ledger, make_notification):
        ledger.mark_all_viewed("admin")
        assert ledger.unviewed_count("admin") == 0
        ledger.add(make_notification(10))
        assert ledger.unviewed_count("admin") == 1

    def test_replace_keeps_viewed_ids(self, ledger, notifications):
        ledger.mark_all_viewed("admin")
        ledger.replace_notifications(notifications)
        assert ledger.unviewed_count("admin") == 0


class TestSnapshot:
    def test_known_resolved_ids_are_completed(self, ledger):
        snapshot = ledger.build_unresolved_snapshot("admin")
        statuses = {n.id: n.status for n in snapshot}
        assert statuses == {
            1: NotificationStatus.UNRESOLVED,
            2: NotificationStatus.UNRESOLVED,
            3: NotificationStatus.COMPLETED,
            4: NotificationStatus.COMPLETED,
            5: NotificationStatus.COMPLETED,
        }

    def test_snapshot_does_not_mutate_ledger(self, ledger):
        ledger.build_unresolved_snapshot("admin")
        assert all(n.status is NotificationStatus.UNRESOLVED for n in ledger.notifications)

    def test_open_panel_persists_then_marks_viewed(self, ledger, storage, recorded_events):
        visible = ledger.open_panel("user")
        assert [n.id for n in visible] == [2, 1, 3]

        stored = json.loads(storage.get(NOTIFICATIONS_STORAGE_KEY))
        assert [item["id"] for item in stored] == [2, 1, 3]
        assert set(stored[0]) == {"id", "type", "message", "timestamp", "status"}
        assert ledger.unviewed_count("user") == 0

        topics = [topic for topic, _ in recorded_events]
        assert topics == ["notification_snapshot_persisted", "notification_panel_opened"]
        assert recorded_events[0][1]["trigger"] == "panel_opened"

    def test_view_history_persists_without_marking_viewed(self, ledger, storage):
        ledger.view_history("admin")
        assert len(json.loads(storage.get(NOTIFICATIONS_STORAGE_KEY))) == 5
        assert ledger.unviewed_count("admin") == 5

    def test_load_history_round_trip(self, ledger):
        ledger.view_history("admin")
        history = ledger.load_history()
        assert [n.id for n in history] == [2, 4, 5, 1, 3]
        assert history[1].status is NotificationStatus.COMPLETED

    @pytest.mark.parametrize("raw", ["{oops", '{"id": 1}', '[{"type": "alert"}]'])
    def test_load_history_ignores_malformed(self, raw):
        ledger = NotificationLedger(InMemoryKeyValueStore({NOTIFICATIONS_STORAGE_KEY: raw}))
        assert ledger.load_history() == []

    def test_custom_resolved_ids(self, storage, notifications):
        ledger = NotificationLedger(storage, notifications=notifications, resolved_ids={1})
        completed = [n.id for n in ledger.build_unresolved_snapshot("admin") if n.status is NotificationStatus.COMPLETED]
        assert completed == [1]


def test_refresh_skips_bad_records(ledger):
    records = [
        {"id": 20, "type": "alert", "message": "ok", "timestamp": "t"},
        {"id": 21, "type": "siren"},
        "garbage",
        {"id": 22, "type": "alarm", "message": "fault", "timestamp": "t"},
    ]
    result = ledger.refresh(lambda: records)
    assert [n.id for n in result] == [22, 20]
