"""
Notification Domain Object
==========================

Alerts and alarms shown in the notification panel, and the wire format used
for the persisted history snapshot.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any, Optional

from thermacore.enums.common import NotificationKind, NotificationStatus

_UNIT_NAME_RE = re.compile(r"ThermaCore Unit (\d+)")


@dataclass(frozen=True)
class Notification:
    id: int
    kind: NotificationKind
    message: str
    timestamp: str
    status: NotificationStatus = NotificationStatus.UNRESOLVED

    @property
    def is_alarm(self) -> bool:
        return self.kind is NotificationKind.ALARM

    @property
    def unit_name(self) -> Optional[str]:
        """Unit referenced by the message, e.g. ``"ThermaCore Unit 003"``."""
        match = _UNIT_NAME_RE.search(self.message)
        if not match:
            return None
        return f"ThermaCore Unit {match.group(1)}"

    def with_status(self, status: NotificationStatus) -> "Notification":
        return replace(self, status=status)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Notification":
        return cls(
            id=int(data["id"]),
            kind=NotificationKind(data.get("type", NotificationKind.ALERT.value)),
            message=str(data.get("message", "")),
            timestamp=str(data.get("timestamp", "")),
            status=NotificationStatus(data.get("status") or NotificationStatus.UNRESOLVED.value),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "status": self.status.value,
        }
