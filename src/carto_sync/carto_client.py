from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterator, Mapping, Optional

import httpx

from .models import CartoConfig

LOGGER = logging.getLogger("carto_sync.carto")

LIST_TABLES_SQL = "SELECT cdb_usertables AS name FROM CDB_UserTables()"


class CartoApiError(Exception):
    """Base exception for CARTO SQL API errors."""


class CartoSqlError(CartoApiError):
    """Raised when the SQL API rejects a query."""


class CartoSqlClient:
    """Async client submitting SQL text to the CARTO SQL API with retry and backoff."""

    def __init__(
        self, config: CartoConfig, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._headers = {"Accept": "application/json"}

    async def __aenter__(self) -> "CartoSqlClient":
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout, transport=self._transport
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def run(self, sql: str) -> Mapping[str, Any]:
        payload = await self._post_json({"q": sql, "api_key": self._config.api_key})
        if not isinstance(payload, Mapping):
            raise CartoApiError("SQL API returned unexpected payload")
        errors = payload.get("error")
        if errors:
            if isinstance(errors, list):
                raise CartoSqlError("; ".join(map(str, errors)))
            raise CartoSqlError(str(errors))
        return payload

    async def list_tables(self) -> list[str]:
        payload = await self.run(LIST_TABLES_SQL)
        rows = payload.get("rows") or []
        return [row["name"] for row in rows if isinstance(row, Mapping) and "name" in row]

    async def _post_json(self, body: Mapping[str, Any]) -> Any:
        if self._client is None:
            raise RuntimeError("HTTP client is not ready")

        url = self._config.sql_url
        max_attempts = max(1, self._config.max_retries + 1)
        delays = backoff_delays(self._config.backoff_factor, self._config.backoff_max)

        for attempt in range(1, max_attempts + 1):
            final = attempt == max_attempts
            LOGGER.debug("Posting to %s (attempt %s/%s)", url, attempt, max_attempts)
            try:
                response = await self._client.post(url, headers=self._headers, json=body)
            except httpx.RequestError as exc:
                if final:
                    raise CartoApiError(f"Network error for {url}: {exc}") from exc
                reason = f"Network error ({exc})"
            else:
                # Query errors come back as 400 with an error list in the body.
                if response.is_success or response.status_code == 400:
                    return response.json()
                if final or not is_retryable_status(response.status_code):
                    LOGGER.error(
                        "HTTP %s for %s; response preview: %s",
                        response.status_code,
                        url,
                        response.text[:500],
                    )
                    raise CartoApiError(f"HTTP {response.status_code} from {url}")
                reason = f"HTTP {response.status_code}"

            delay = next(delays)
            LOGGER.warning(
                "%s for %s (attempt %s/%s). Retrying in %.1fs",
                reason,
                url,
                attempt,
                max_attempts,
                delay,
            )
            await asyncio.sleep(delay)

        raise CartoApiError(f"Failed to post to {url} after {max_attempts} attempts")


def is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code in {408, 429}


def backoff_delays(factor: float, ceiling: Optional[float]) -> Iterator[float]:
    """Exponential delays starting at ``factor`` seconds, capped at ``ceiling`` when positive."""
    delay = max(factor, 0.0) or 1.0
    while True:
        yield min(delay, ceiling) if ceiling and ceiling > 0 else delay
        delay *= 2
