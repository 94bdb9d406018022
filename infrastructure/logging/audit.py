import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict


class AuditLogger:
    """Append-only JSON-lines record of committed control actions."""

    def __init__(self, log_path: str, level: str = "INFO", *, logger_name: str = "thermacore.audit") -> None:
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.propagate = False

        # Reuse the handler when several app instances share the audit file
        if not any(
            isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == self.log_path.resolve()
            for handler in self.logger.handlers
        ):
            handler = RotatingFileHandler(
                filename=str(self.log_path),
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=30,
                encoding="utf-8",
                delay=True,
            )
            handler.setFormatter(
                logging.Formatter(
                    fmt="%(asctime)sZ | %(levelname)s | %(message)s",
                    datefmt="%Y-%m-%dT%H:%M:%S",
                )
            )
            self.logger.addHandler(handler)

    def log_event(self, actor: str, action: str, resource: str, outcome: str, **metadata: Any) -> None:
        payload: Dict[str, Any] = {
            "actor": actor,
            "action": action,
            "resource": resource,
            "outcome": outcome,
        }
        if metadata:
            payload["meta"] = metadata

        self.logger.info(json.dumps(payload, default=str))

    def log_control_change(self, data: Dict[str, Any]) -> None:
        """Event bus listener for unit control payloads."""
        self.log_event(
            actor=data.get("actor") or "operator",
            action=data.get("control", "unknown"),
            resource=f"unit:{data.get('unit_id')}",
            outcome="on" if data.get("on") else "off",
            cascaded=data.get("cascaded") or [],
            state=data.get("state") or {},
        )

    def close(self) -> None:
        """Detach and close the handler writing to this audit file."""
        for handler in list(self.logger.handlers):
            if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == self.log_path.resolve():
                self.logger.removeHandler(handler)
                handler.close()
