# storage.py
# JSON file storage: one list of records per collection. Fine for a single
# process; writes are serialized with a lock.

import json
import os
import tempfile
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

COLLECTIONS = ("rfps", "vendors", "proposals")


class JsonStore:
    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.files = {key: self.data_dir / f"{key}.json" for key in COLLECTIONS}
        for f in self.files.values():
            if not f.exists():
                f.write_text("[]")
        self._lock = threading.RLock()

    def read_json(self, key: str) -> List[Dict[str, Any]]:
        p = self.files[key]
        try:
            return json.loads(p.read_text())
        except (OSError, json.JSONDecodeError):
            return []

    def write_json(self, key: str, obj: Any):
        # readers take no lock; they see either the old file or the new one
        payload = json.dumps(obj, indent=2, default=str)
        with self._lock:
            fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    f.write(payload)
                os.replace(tmp, self.files[key])
            except OSError:
                Path(tmp).unlink(missing_ok=True)
                raise

    def get(self, key: str, record_id: str) -> Optional[Dict[str, Any]]:
        return next((x for x in self.read_json(key) if x.get("id") == record_id), None)

    def insert(self, key: str, record: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if not record.get("id"):
                record = {**record, "id": str(uuid.uuid4())}
            rows = self.read_json(key)
            rows.append(record)
            self.write_json(key, rows)
        return record

    def update(self, key: str, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            rows = self.read_json(key)
            for i, row in enumerate(rows):
                if row.get("id") == record_id:
                    rows[i] = {**row, **changes, "id": record_id}
                    self.write_json(key, rows)
                    return rows[i]
        return None

    def delete(self, key: str, record_id: str) -> bool:
        with self._lock:
            rows = self.read_json(key)
            kept = [x for x in rows if x.get("id") != record_id]
            if len(kept) == len(rows):
                return False
            self.write_json(key, kept)
        return True

    def delete_where(self, key: str, **match) -> int:
        with self._lock:
            rows = self.read_json(key)
            kept = [x for x in rows if any(x.get(k) != v for k, v in match.items())]
            self.write_json(key, kept)
        return len(rows) - len(kept)
