"""
Supabase implementation of ExerciseMediaCacheRepository.

Rows live in the ``musclewiki_exercise_cache`` table, one per normalized
exercise name, and are shared by every user of the service so a lookup paid
for once is free for everyone afterwards.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Optional

from supabase import Client

from backend.core.normalize import normalize_name
from domain.models.exercise_media import ExerciseRecord, FullRecord

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "musclewiki_exercise_cache"
MOST_ACCESSED_LIMIT = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SupabaseExerciseMediaCacheRepository:
    """
    Supabase implementation of ExerciseMediaCacheRepository protocol.

    Rows whose ``fetched_at`` is older than ``ttl_days`` are treated as misses
    when a TTL is configured; by default rows never go stale.
    """

    def __init__(
        self,
        client: Client,
        table: str = DEFAULT_TABLE,
        ttl_days: Optional[int] = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
            table: Cache table name
            ttl_days: Age after which a row counts as a miss (None = never)
            now: Clock used for staleness and fetched_at (injectable for tests)
        """
        self._client = client
        self._table = table
        self._ttl_days = ttl_days
        self._now = now

    # =========================================================================
    # Row conversion
    # =========================================================================

    def _is_stale(self, row: Dict[str, Any]) -> bool:
        if self._ttl_days is None:
            return False
        fetched_at = _parse_timestamp(row.get("fetched_at"))
        if fetched_at is None:
            return True
        return self._now() - fetched_at > timedelta(days=self._ttl_days)

    def _to_record(self, row: Dict[str, Any]) -> Optional[FullRecord]:
        try:
            return FullRecord(
                id=row.get("musclewiki_id"),
                name=row.get("name"),
                category=row.get("category"),
                difficulty=row.get("difficulty"),
                mechanic=row.get("mechanic"),
                force=row.get("force"),
                primary_muscles=row.get("primary_muscles"),
                grips=row.get("grips"),
                steps=row.get("steps"),
                media=row.get("videos"),
            )
        except Exception:
            logger.exception(f"Unreadable cache row for '{row.get('name_normalized')}'")
            return None

    def _to_row(self, record: ExerciseRecord, key: str) -> Dict[str, Any]:
        return {
            "musclewiki_id": record.id,
            "name": record.name,
            "name_normalized": key,
            "category": record.category,
            "difficulty": record.difficulty,
            "mechanic": record.mechanic,
            "force": record.force,
            "primary_muscles": list(record.primary_muscles),
            "grips": list(record.grips),
            "steps": list(record.steps),
            "videos": [variant.model_dump() for variant in record.media],
            "fetched_at": self._now().isoformat(),
            "access_count": 1,
        }

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, name: str) -> Optional[FullRecord]:
        """
        Get a cached record by exercise name.

        Args:
            name: Raw or normalized exercise name

        Returns:
            The cached record, or None on a miss, a stale row or an error
        """
        key = normalize_name(name)
        if not key:
            return None
        try:
            result = (
                self._client.table(self._table)
                .select("*")
                .eq("name_normalized", key)
                .limit(1)
                .execute()
            )
        except Exception:
            logger.exception(f"Error reading media cache for '{key}'")
            return None

        if not result.data:
            return None
        row = result.data[0]
        if self._is_stale(row):
            logger.debug(f"Media cache row for '{key}' is stale")
            return None
        return self._to_record(row)

    def get_many(self, names: Iterable[str]) -> Dict[str, FullRecord]:
        """
        Get cached records for several names in one query.

        Args:
            names: Raw or normalized exercise names

        Returns:
            Mapping of normalized name -> record for fresh hits
        """
        keys = sorted({normalize_name(n) for n in names} - {""})
        if not keys:
            return {}
        try:
            result = (
                self._client.table(self._table)
                .select("*")
                .in_("name_normalized", keys)
                .execute()
            )
        except Exception:
            logger.exception(f"Error batch reading media cache for {len(keys)} names")
            return {}

        records: Dict[str, FullRecord] = {}
        for row in result.data or []:
            if self._is_stale(row):
                continue
            record = self._to_record(row)
            if record is not None:
                records[row.get("name_normalized") or normalize_name(record.name)] = record
        return records

    def get_stats(self) -> Dict[str, Any]:
        """
        Cache statistics.

        Returns:
            {"total_cached": int, "most_accessed": [{"name", "access_count"}, ...]}
        """
        try:
            total = (
                self._client.table(self._table)
                .select("name_normalized", count="exact")
                .limit(1)
                .execute()
            )
            top = (
                self._client.table(self._table)
                .select("name, access_count")
                .order("access_count", desc=True)
                .limit(MOST_ACCESSED_LIMIT)
                .execute()
            )
        except Exception:
            logger.exception("Error fetching media cache stats")
            return {"total_cached": 0, "most_accessed": []}

        return {
            "total_cached": total.count or 0,
            "most_accessed": [
                {"name": row.get("name"), "access_count": row.get("access_count") or 0}
                for row in top.data or []
            ],
        }

    # =========================================================================
    # Writes
    # =========================================================================

    def save(self, record: ExerciseRecord, key: Optional[str] = None) -> bool:
        """
        Upsert a record on its normalized name.

        Args:
            record: The record to persist
            key: Name to store it under (defaults to the record's own name)

        Returns:
            True if the upsert succeeded
        """
        cache_key = normalize_name(key or record.name)
        if not cache_key:
            return False
        try:
            self._client.table(self._table).upsert(
                self._to_row(record, cache_key),
                on_conflict="name_normalized",
            ).execute()
            logger.info(f"Saved '{record.name}' to media cache as '{cache_key}'")
            return True
        except Exception:
            logger.exception(f"Error saving '{record.name}' to media cache")
            return False

    def save_many(self, records: Iterable[ExerciseRecord]) -> int:
        """
        Upsert several records under their own names in one request.

        Returns:
            Number of rows written (0 on error)
        """
        rows: Dict[str, Dict[str, Any]] = {}
        for record in records:
            key = normalize_name(record.name)
            if key and key not in rows:
                rows[key] = self._to_row(record, key)
        if not rows:
            return 0
        try:
            self._client.table(self._table).upsert(
                list(rows.values()),
                on_conflict="name_normalized",
            ).execute()
            logger.info(f"Saved {len(rows)} exercises to media cache")
            return len(rows)
        except Exception:
            logger.exception(f"Error batch saving {len(rows)} exercises to media cache")
            return 0

    def increment_access_count(self, name: str) -> None:
        """Bump the hit counter for a cached name; errors are logged only."""
        key = normalize_name(name)
        try:
            result = (
                self._client.table(self._table)
                .select("access_count")
                .eq("name_normalized", key)
                .limit(1)
                .execute()
            )
            if not result.data:
                return
            count = (result.data[0].get("access_count") or 0) + 1
            self._client.table(self._table).update({"access_count": count}).eq(
                "name_normalized", key
            ).execute()
        except Exception:
            logger.exception(f"Error incrementing access count for '{key}'")

