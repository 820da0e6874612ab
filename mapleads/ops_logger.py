from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


class OpsLogger:
    """Append-only JSONL log of run events (walk, enrich, summary).

    Each line carries ``mle_ops``, the event name, the run id and a UTC
    timestamp. Writes are serialized with a lock; failures are swallowed so a
    full disk never breaks a scrape.
    """

    def __init__(self, file_path: Path, also_stdout: bool = False, run_id: Optional[str] = None) -> None:
        self.file_path = Path(file_path)
        self.also_stdout = bool(also_stdout)
        self.run_id = run_id or datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        self._lock = threading.Lock()
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass

    def emit(self, event: str, **fields: Any) -> None:
        record: Dict[str, Any] = {
            "mle_ops": 1,
            "event": event,
            "run_id": self.run_id,
            "ts": datetime.now(timezone.utc).isoformat(),
            **fields,
        }
        try:
            line = json.dumps(record, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            line = json.dumps({"mle_ops": 1, "event": event, "_serialization_error": True})
        try:
            with self._lock:
                with self.file_path.open("a", encoding="utf-8") as f:
                    f.write(line)
                    f.write("\n")
        except OSError:
            pass
        if self.also_stdout:
            print(line)
