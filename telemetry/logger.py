from __future__ import annotations

import json
import os
import threading
from typing import Any, Dict, List, Optional, TextIO


class TelemetryLogger:
    """Append-only JSONL sink for simulation events and car snapshots.

    Every record is written as one compact JSON object per line. When a
    ``run_id`` is given it is stamped onto each record so several runs can
    share a file. Safe to share between threads; usable as a context
    manager.
    """

    def __init__(self, path: str, run_id: Optional[str] = None) -> None:
        self.path = path
        self.run_id = run_id
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._lock = threading.Lock()
        self._fp: Optional[TextIO] = open(self.path, "a", encoding="utf-8")
        self.records_written = 0

    def log_step(self, record: Dict[str, Any]) -> None:
        """Append one record; ignored once the logger is closed."""
        if self._fp is None:
            return
        if self.run_id is not None:
            record = {"run": self.run_id, **record}
        # Enums and other non-JSON values are written as strings
        line = json.dumps(record, separators=(",", ":"), default=str)
        with self._lock:
            self._fp.write(line + "\n")
            self._fp.flush()
            self.records_written += 1

    def log_event(self, tick: int, event: str, **fields: Any) -> None:
        self.log_step({"tick": tick, "event": event, **fields})

    def close(self) -> None:
        if self._fp is not None:
            self._fp.close()
            self._fp = None

    def __enter__(self) -> "TelemetryLogger":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def read_jsonl(path: str, event: Optional[str] = None) -> List[Dict[str, Any]]:
    """Load the records of a JSONL telemetry file, optionally one event kind."""
    records: List[Dict[str, Any]] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            record = json.loads(line)
            if event is None or record.get("event") == event:
                records.append(record)
    return records
