"""
HTTP client for the MuscleWiki exercise media API (served through RapidAPI).

This client is the only place external payloads are parsed into records.
Search hits that already carry videos are tagged FullRecord; the rest are
PartialRecord and need a fetch by id for their media.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from backend.core.errors import ConfigurationError, LookupTransportError
from domain.models.exercise_media import ExerciseRecord, FullRecord, PartialRecord

logger = logging.getLogger(__name__)

DEFAULT_API_HOST = "musclewiki-api.p.rapidapi.com"
DEFAULT_BASE_URL = f"https://{DEFAULT_API_HOST}"


def _record_fields(item: Dict[str, Any]) -> Dict[str, Any]:
    """Map a MuscleWiki exercise payload onto ExerciseRecord fields."""
    return {
        "id": item.get("id"),
        "name": item.get("name"),
        "category": item.get("category"),
        "difficulty": item.get("difficulty"),
        "mechanic": item.get("mechanic"),
        "force": item.get("force"),
        "primary_muscles": item.get("primary_muscles"),
        "grips": item.get("grips"),
        "steps": item.get("steps"),
        "media": item.get("videos"),
    }


def parse_search_item(item: Any) -> Optional[ExerciseRecord]:
    """
    Parse one search hit, tagging it by whether it carried media.

    Returns:
        FullRecord or PartialRecord, or None if the item is unusable
    """
    if not isinstance(item, dict):
        return None
    record_cls = FullRecord if item.get("videos") else PartialRecord
    try:
        record = record_cls(**_record_fields(item))
    except ValidationError as e:
        logger.warning(f"Skipping malformed MuscleWiki item {item.get('id')!r}: {e}")
        return None
    if record_cls is FullRecord and not record.has_media:
        # Every video was unplayable, so the hit still needs enrichment.
        return PartialRecord(**record.model_dump(exclude={"detail"}))
    return record


def parse_full_record(item: Any) -> FullRecord:
    """Parse a fetch-by-id payload; raises LookupTransportError if malformed."""
    if not isinstance(item, dict):
        raise LookupTransportError("Malformed MuscleWiki exercise payload")
    try:
        return FullRecord(**_record_fields(item))
    except ValidationError as e:
        raise LookupTransportError(f"Malformed MuscleWiki exercise payload: {e}") from e


class MuscleWikiClient:
    """
    HTTP client for MuscleWiki API communication.

    Each call opens its own httpx.AsyncClient with the configured timeout.
    Rate limiting is the caller's job (see backend.core.rate_limiter).
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_host: str = DEFAULT_API_HOST,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
    ):
        """
        Initialize the MuscleWiki client.

        Args:
            api_key: RapidAPI key
            api_host: RapidAPI host header value
            base_url: Base URL of the API
            timeout: Per-request timeout in seconds

        Raises:
            ConfigurationError: If no API key is provided
        """
        if not api_key:
            raise ConfigurationError(
                "MUSCLEWIKI_API_KEY is not configured; exercise media lookups are disabled"
            )
        self._api_key = api_key
        self._api_host = api_host
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "X-RapidAPI-Key": self._api_key,
            "X-RapidAPI-Host": self._api_host,
        }

    async def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
    ) -> Any:
        """
        GET a path and return the decoded JSON body.

        Returns:
            The JSON body, or None on a 404 when allow_not_found is set

        Raises:
            LookupTransportError: On network failure, timeout, unexpected
                status or undecodable body
        """
        url = f"{self._base_url}{path}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=params, headers=self._headers())

                if response.status_code == 404 and allow_not_found:
                    return None
                if response.status_code != 200:
                    logger.error(
                        f"MuscleWiki API error: {response.status_code} - {response.text}"
                    )
                    raise LookupTransportError(
                        f"MuscleWiki API returned {response.status_code} for {path}",
                        response.status_code,
                    )
                try:
                    return response.json()
                except ValueError as e:
                    raise LookupTransportError(
                        f"MuscleWiki API returned invalid JSON for {path}"
                    ) from e

        except httpx.TimeoutException as e:
            logger.warning(f"MuscleWiki API timeout: {e}")
            raise LookupTransportError("MuscleWiki API request timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"MuscleWiki API unavailable: {e}")
            raise LookupTransportError(
                f"MuscleWiki API is not available at {self._base_url}"
            ) from e

    def _parse_results(self, data: Any, path: str) -> List[ExerciseRecord]:
        if isinstance(data, dict):
            items = data.get("results")
        else:
            items = data
        if items is None:
            return []
        if not isinstance(items, list):
            raise LookupTransportError(f"Unexpected MuscleWiki payload shape for {path}")
        records = []
        for item in items:
            record = parse_search_item(item)
            if record is not None:
                records.append(record)
        return records

    async def search_by_text(self, query: str, limit: int = 5) -> List[ExerciseRecord]:
        """
        Free-text search.

        Raises:
            LookupTransportError: If the call fails
        """
        data = await self._get("/search", params={"q": query, "limit": limit})
        records = self._parse_results(data, "/search")
        logger.info(f"MuscleWiki search '{query}' returned {len(records)} results")
        return records

    async def search_by_muscle(
        self, muscle_name: str, limit: int = 20
    ) -> List[ExerciseRecord]:
        """
        Exercises for one muscle, as the API spells it.

        Raises:
            LookupTransportError: If the call fails
        """
        data = await self._get(
            "/exercises", params={"muscles": muscle_name, "limit": limit}
        )
        records = self._parse_results(data, "/exercises")
        logger.info(f"MuscleWiki muscle search '{muscle_name}' returned {len(records)} results")
        return records

    async def fetch_by_id(self, exercise_id: Union[int, str]) -> Optional[FullRecord]:
        """
        Fetch one exercise with its full media set.

        Returns:
            The record, or None if the API has no exercise with this id

        Raises:
            LookupTransportError: If the call fails
        """
        data = await self._get(f"/exercises/{exercise_id}", allow_not_found=True)
        if data is None:
            return None
        return parse_full_record(data)

    async def _list_names(self, path: str) -> List[str]:
        data = await self._get(path)
        if not isinstance(data, list):
            raise LookupTransportError(f"Unexpected MuscleWiki payload shape for {path}")
        names = []
        for item in data:
            if isinstance(item, dict) and item.get("name"):
                names.append(str(item["name"]))
            elif isinstance(item, str) and item:
                names.append(item)
        return names

    async def list_muscle_names(self) -> List[str]:
        return await self._list_names("/muscles")

    async def list_category_names(self) -> List[str]:
        return await self._list_names("/categories")

    async def search(
        self,
        query: str,
        limit: int = 20,
        muscles: Optional[Sequence[str]] = None,
        categories: Optional[Sequence[str]] = None,
        difficulty: Optional[str] = None,
        force: Optional[str] = None,
    ) -> List[ExerciseRecord]:
        """
        Filtered search; list filters are sent comma-separated.

        Raises:
            LookupTransportError: If the call fails
        """
        params: Dict[str, Any] = {"q": query, "limit": limit}
        if muscles:
            params["muscles"] = ",".join(muscles)
        if categories:
            params["category"] = ",".join(categories)
        if difficulty:
            params["difficulty"] = difficulty
        if force:
            params["force"] = force

        data = await self._get("/search", params=params)
        return self._parse_results(data, "/search")
