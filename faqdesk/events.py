# SPDX-License-Identifier: CC0-1.0

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("faqdesk.events")


class EventLog:
    """
    Structured events of the search pipeline.

    Every event goes to the ``faqdesk.events`` logger; with a path it is also
    appended to a JSONL file, one object per line.
    """

    def __init__(self, path: Optional[Path] = None, level: int = logging.INFO):
        self.path = path
        self.level = level
        self._lock = threading.Lock()
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event: str, **fields: Any) -> None:
        record: Dict[str, Any] = {
            "type": "event",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
        }
        record.update(fields)

        line = json.dumps(record, ensure_ascii=False, default=str)
        logger.log(self.level, line)

        if self.path is None:
            return
        with self._lock:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")


class RecordingEventLog(EventLog):
    """Keeps events in memory so a caller can inspect one turn."""

    def __init__(self):
        super().__init__(path=None, level=logging.DEBUG)
        self.events: List[Dict[str, Any]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append({"event": event, **fields})
        super().emit(event, **fields)

    def names(self) -> List[str]:
        return [e["event"] for e in self.events]
