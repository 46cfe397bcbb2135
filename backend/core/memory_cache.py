"""Process-local cache of resolved exercise records."""
from typing import Dict, Iterable, Optional

from backend.core.normalize import normalize_name
from domain.models.exercise_media import ExerciseRecord


class MemoryCache:
    """
    Unbounded map of normalized name -> ExerciseRecord.

    Lives for the process lifetime and is only touched from the event loop
    thread. Keys are normalized on every access, so callers may pass raw names.
    """

    def __init__(self):
        self._records: Dict[str, ExerciseRecord] = {}

    def get(self, name: str) -> Optional[ExerciseRecord]:
        return self._records.get(normalize_name(name))

    def put(self, name: str, record: ExerciseRecord) -> None:
        key = normalize_name(name)
        if key:
            self._records[key] = record

    def put_under_names(self, record: ExerciseRecord, *names: str) -> None:
        """Store a record under each given name and under its own name."""
        for name in (*names, record.name):
            self.put(name, record)

    def contains(self, name: str) -> bool:
        return normalize_name(name) in self._records

    def keys(self) -> Iterable[str]:
        return list(self._records.keys())

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: str) -> bool:
        return self.contains(name)
