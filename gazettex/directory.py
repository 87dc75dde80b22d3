"""
Collaborator interfaces consumed by the reconciliation pipeline.

The pipeline never reaches for global collections; it is handed a court
directory, a record directory and a scan store. The in-memory versions below
serve tests and callers without a database. The MongoDB versions live in
gazettex.db.mongo.
"""

import copy
import datetime
import itertools
import re
import threading
from typing import Dict, List, Optional

from gazettex.model import Court, Gazette, Record, ScanLog


class CourtDirectory:
    """Read-only court lookups."""

    def find_court_by_name(self, name_fragment: str) -> Optional[Court]:
        raise NotImplementedError


class RecordDirectory:
    """Record lookups and status updates."""

    def find_records_by_normalized_name(self, name: str) -> List[Record]:
        raise NotImplementedError

    def update_record_status(self, record_id: str, update: Dict) -> None:
        raise NotImplementedError


class ScanStore:
    """Persistence for gazettes and scan logs."""

    def save_gazette(self, gazette: Gazette) -> str:
        raise NotImplementedError

    def save_scan_log(self, scan_log: ScanLog) -> str:
        raise NotImplementedError

    def list_gazettes(self) -> List[Gazette]:
        raise NotImplementedError

    def get_gazette(self, gazette_id: str) -> Optional[Gazette]:
        raise NotImplementedError

    def list_scan_logs(self) -> List[ScanLog]:
        raise NotImplementedError


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a name for comparison.

    Args:
        name: Name to normalize

    Returns:
        Whitespace-collapsed lowercase name
    """
    return re.sub(r"\s+", " ", name or "").strip().lower()


class InMemoryCourtDirectory(CourtDirectory):
    """Court directory over a list, searched in list order."""

    def __init__(self, courts: Optional[List[Court]] = None):
        self.courts = list(courts or [])

    def find_court_by_name(self, name_fragment: str) -> Optional[Court]:
        pattern = re.compile(re.escape(name_fragment.strip()), re.IGNORECASE)
        for court in self.courts:
            if pattern.search(court.get("name", "")):
                return court
        return None


class InMemoryRecordDirectory(RecordDirectory):
    """Record directory over a list of record dicts, updated in place."""

    def __init__(self, records: Optional[List[Record]] = None):
        self.records = list(records or [])
        self._lock = threading.Lock()

    def find_records_by_normalized_name(self, name: str) -> List[Record]:
        key = normalize_name(name)
        return [r for r in self.records if normalize_name(r.get("name_of_deceased")) == key]

    def update_record_status(self, record_id: str, update: Dict) -> None:
        with self._lock:
            for record in self.records:
                if record.get("id") == record_id:
                    record.update(update)
                    return
        raise KeyError(f"Record not found: {record_id}")

    def get(self, record_id: str) -> Optional[Record]:
        for record in self.records:
            if record.get("id") == record_id:
                return record
        return None


class InMemoryScanStore(ScanStore):
    """Scan store that keeps documents in lists."""

    def __init__(self):
        self.gazettes: List[Gazette] = []
        self.scan_logs: List[ScanLog] = []
        self._ids = itertools.count(1)

    def save_gazette(self, gazette: Gazette) -> str:
        doc = copy.deepcopy(gazette)
        doc["id"] = f"gazette-{next(self._ids)}"
        doc.setdefault("created_at", datetime.datetime.now())
        self.gazettes.append(doc)
        return doc["id"]

    def save_scan_log(self, scan_log: ScanLog) -> str:
        doc = copy.deepcopy(scan_log)
        doc["id"] = f"scanlog-{next(self._ids)}"
        self.scan_logs.append(doc)
        return doc["id"]

    def list_gazettes(self) -> List[Gazette]:
        return list(reversed(self.gazettes))

    def get_gazette(self, gazette_id: str) -> Optional[Gazette]:
        for gazette in self.gazettes:
            if gazette["id"] == gazette_id:
                return gazette
        return None

    def list_scan_logs(self) -> List[ScanLog]:
        return list(reversed(self.scan_logs))
