"""
Notification Ledger
===================

Bookkeeping behind the notification bell:

- the ordered notification list (alarms first, otherwise insertion order)
- role filtering (admins see every alarm, other roles only the first)
- the set of viewed notification ids, which only grows during a session
- the unresolved snapshot persisted for the history view, where a fixed set
  of known-resolved ids is force-completed regardless of viewed state
"""
from __future__ import annotations

import json
import logging
from typing import Callable, Iterable, List, Optional

from infrastructure.storage.key_value import KeyValueStore
from thermacore.domain.notifications import Notification
from thermacore.enums.common import NotificationStatus, UserRole
from thermacore.enums.events import NotificationEvent
from thermacore.schemas.events import NotificationSnapshotPayload
from thermacore.utils.event_bus import EventBus
from thermacore.utils.time import iso_now

logger = logging.getLogger(__name__)

NOTIFICATIONS_STORAGE_KEY = "unresolvedNotifications"
KNOWN_RESOLVED_IDS = frozenset({3, 4, 5})


class NotificationLedger:
    def __init__(
        self,
        storage: KeyValueStore,
        *,
        storage_key: str = NOTIFICATIONS_STORAGE_KEY,
        resolved_ids: Iterable[int] = KNOWN_RESOLVED_IDS,
        notifications: Iterable[Notification] = (),
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self.storage = storage
        self.storage_key = storage_key
        self.resolved_ids = frozenset(resolved_ids)
        self.event_bus = event_bus
        self._notifications: List[Notification] = []
        self._viewed_ids: set[int] = set()
        self.replace_notifications(notifications)

    # --- Contents ------------------------------------------------------------------
    def replace_notifications(self, notifications: Iterable[Notification]) -> None:
        """Swap in a freshly fetched list. Viewed ids are kept."""
        items = list(notifications)
        # sorted() is stable, so insertion order survives within each kind
        self._notifications = sorted(items, key=lambda n: 0 if n.is_alarm else 1)

    def add(self, notification: Notification) -> None:
        self.replace_notifications([*self._notifications, notification])

    @property
    def notifications(self) -> List[Notification]:
        return list(self._notifications)

    def visible(self, role: UserRole | str | None = UserRole.USER) -> List[Notification]:
        role = UserRole.coerce(role)
        alarms = [n for n in self._notifications if n.is_alarm]
        alerts = [n for n in self._notifications if not n.is_alarm]
        if not role.is_privileged:
            alarms = alarms[:1]
        return alarms + alerts

    def visible_count_for(self, role: UserRole | str | None = UserRole.USER) -> int:
        return len(self.visible(role))

    # --- Viewed bookkeeping --------------------------------------------------------
    @property
    def viewed_ids(self) -> frozenset[int]:
        return frozenset(self._viewed_ids)

    def unviewed(self, role: UserRole | str | None = UserRole.USER) -> List[Notification]:
        return [n for n in self.visible(role) if n.id not in self._viewed_ids]

    def unviewed_count(self, role: UserRole | str | None = UserRole.USER) -> int:
        return len(self.unviewed(role))

    def mark_all_viewed(self, role: UserRole | str | None = UserRole.USER) -> frozenset[int]:
        """Union every visible id into the viewed set in one step."""
        self._viewed_ids |= {n.id for n in self.visible(role)}
        return self.viewed_ids

    def reset_viewed(self) -> None:
        self._viewed_ids = set()

    # --- History snapshot ----------------------------------------------------------
    def build_unresolved_snapshot(self, role: UserRole | str | None = UserRole.USER) -> List[Notification]:
        return [
            n.with_status(
                NotificationStatus.COMPLETED if n.id in self.resolved_ids else NotificationStatus.UNRESOLVED
            )
            for n in self.visible(role)
        ]

    def persist_snapshot(self, role: UserRole | str | None = UserRole.USER, *, trigger: str) -> List[Notification]:
        role = UserRole.coerce(role)
        snapshot = self.build_unresolved_snapshot(role)
        try:
            self.storage.set(self.storage_key, json.dumps([n.to_dict() for n in snapshot]))
        except Exception as e:
            logger.error("Failed to save notification snapshot to %s: %s", self.storage_key, e)
            return snapshot

        if self.event_bus is not None:
            self.event_bus.publish(
                NotificationEvent.SNAPSHOT_PERSISTED,
                NotificationSnapshotPayload(trigger=trigger, role=role.value, count=len(snapshot), timestamp=iso_now()),
            )
        return snapshot

    def open_panel(self, role: UserRole | str | None = UserRole.USER) -> List[Notification]:
        """Bell opened: persist the snapshot, then mark everything visible as viewed."""
        role = UserRole.coerce(role)
        visible = self.visible(role)
        self.persist_snapshot(role, trigger="panel_opened")
        self.mark_all_viewed(role)
        if self.event_bus is not None:
            self.event_bus.publish(
                NotificationEvent.PANEL_OPENED,
                {"role": role.value, "count": len(visible), "timestamp": iso_now()},
            )
        return visible

    def view_history(self, role: UserRole | str | None = UserRole.USER) -> List[Notification]:
        return self.persist_snapshot(role, trigger="history_viewed")

    def load_history(self) -> List[Notification]:
        """Last persisted snapshot; empty when missing or unreadable."""
        try:
            raw = self.storage.get(self.storage_key)
        except Exception as e:
            logger.warning("Could not read notification history from %s: %s", self.storage_key, e)
            return []
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            return [Notification.from_dict(item) for item in data]
        except (AttributeError, TypeError, ValueError, KeyError) as e:
            logger.warning("Ignoring malformed notification history %s: %s", self.storage_key, e)
            return []

    def refresh(self, fetch: Callable[[], List[dict]]) -> List[Notification]:
        """Replace the contents with records from ``fetch``; bad records are skipped."""
        items: List[Notification] = []
        for raw in fetch():
            try:
                items.append(Notification.from_dict(raw))
            except (AttributeError, TypeError, ValueError, KeyError) as e:
                logger.warning("Skipping malformed notification %r: %s", raw, e)
        self.replace_notifications(items)
        return self.notifications
