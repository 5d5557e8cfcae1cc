from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import httpx
import structlog

from .config import CENSUS_API_BASE, Settings
from .errors import NetworkFailure, NoDataFound
from .query_builder import CensusRequest, Location, build_request, geography_query_string
from .records import CategoryRecord, decode_record
from .variables import Category

logger = structlog.get_logger(__name__)

USER_AGENT = "censusly/0.1"


@dataclass(frozen=True)
class ApiConfig:
    base_url: str = CENSUS_API_BASE
    api_key: str = ""
    timeout: float = 20.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ApiConfig":
        return cls(base_url=settings.api_base, api_key=settings.api_key, timeout=settings.timeout)


def _short_error_text(text: str, limit: int = 240) -> str:
    one_line = " ".join(text.split())
    if len(one_line) <= limit:
        return one_line
    return one_line[:limit] + "..."


async def request_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: list[tuple[str, str]] | None,
    stage: str,
    config: ApiConfig,
) -> Any:
    """Single-attempt GET returning decoded JSON. Failures are never retried."""
    headers = {"User-Agent": USER_AGENT}
    try:
        response = await client.get(url, params=params, timeout=config.timeout, headers=headers)
    except (httpx.TimeoutException, httpx.TransportError) as exc:
        raise NetworkFailure(stage, f"Network error: {exc!s}") from exc
    except httpx.HTTPError as exc:
        raise NetworkFailure(stage, f"HTTP client error: {exc!s}") from exc

    status = response.status_code
    # The Census API answers 204 with an empty body when nothing matches.
    if status == 204 or (status < 400 and not response.content.strip()):
        raise NoDataFound(stage, f"No rows returned (HTTP {status})")

    if status >= 400:
        raise NetworkFailure(stage, f"HTTP {status}: {_short_error_text(response.text)}")

    try:
        return response.json()
    except ValueError as exc:
        raise NetworkFailure(
            stage, f"Invalid JSON in upstream response (HTTP {status}): {_short_error_text(response.text)}"
        ) from exc


def table_rows(payload: Any, stage: str) -> list[list[Any]]:
    """Validate a header-plus-rows payload. One row or fewer means no data."""
    if not isinstance(payload, list) or not all(isinstance(row, list) for row in payload):
        raise NetworkFailure(stage, "Malformed response: expected a JSON array of arrays")
    if len(payload) <= 1:
        raise NoDataFound(stage, "Response contained no data rows")
    return payload


def project_profile_row(header: Sequence[Any], row: Sequence[Any], request: CensusRequest) -> list[Any]:
    """Reduce a data row to its variable cells plus the geography's state FIPS.

    The API echoes one column per geography predicate (``state`` and
    ``county`` for a county query). Only a row of exactly that shape is
    reduced; anything else is returned unchanged so decoding fails on it.
    """
    count = len(request.variables)
    if len(row) != count + len(request.geography_clause):
        return list(row)
    if len(header) == len(row) and "state" in header[count:]:
        fips_index = count + list(header[count:]).index("state")
    else:
        fips_index = len(row) - 1
    return [*row[:count], row[fips_index]]


class CensusClient:
    """Thin async client over the ACS 5-year endpoints."""

    def __init__(self, client: httpx.AsyncClient, config: ApiConfig | None = None):
        self._client = client
        self.config = config or ApiConfig()

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path}"

    async def fetch_profile_row(self, request: CensusRequest, *, stage: str = "profile") -> list[Any]:
        logger.debug(
            "Requesting profile row",
            stage=stage,
            year=request.year,
            geography=geography_query_string(request),
            variables=len(request.variables),
        )
        payload = await request_json(
            self._client,
            request.url(self.config.base_url),
            params=request.params(self.config.api_key),
            stage=stage,
            config=self.config,
        )
        rows = table_rows(payload, stage)
        return project_profile_row(rows[0], rows[-1], request)

    async def fetch_record(self, location: Location, category: Category, year: int) -> CategoryRecord:
        category = Category(category)
        stage = f"profile:{category.value}:{year}"
        request = build_request(location, year, category)
        row = await self.fetch_profile_row(request, stage=stage)
        return decode_record(category, row, stage=stage)

    async def fetch_names(
        self,
        year: int,
        clause: Sequence[tuple[str, str]],
        *,
        stage: str,
    ) -> list[list[Any]]:
        """Return the data rows (header dropped) of a ``get=NAME`` lookup."""
        params = [("get", "NAME"), *clause]
        if self.config.api_key:
            params.append(("key", self.config.api_key))
        payload = await request_json(
            self._client,
            self._url(f"{year}/acs/acs5"),
            params=params,
            stage=stage,
            config=self.config,
        )
        return table_rows(payload, stage)[1:]
