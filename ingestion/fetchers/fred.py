"""
FRED (Federal Reserve Economic Data) API fetcher.

Endpoint: https://api.stlouisfed.org/fred/series/observations
Docs: https://fred.stlouisfed.org/docs/api/fred/

Requires an API key (free registration at https://fred.stlouisfed.org/docs/api/api_key.html).
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import httpx

from config.settings import FRED_BASE_URL, FRED_HISTORY_START
from ingestion.fetchers.base import BaseFetcher
from processing.series import ObservationSeries, SeriesPoint, to_float

logger = logging.getLogger(__name__)


def parse_observations(payload: dict) -> ObservationSeries:
    """
    Convert a FRED observations payload into an ascending series.

    FRED marks missing readings with "."; those stay in the series with
    value=None so downstream anchors see the gap.
    """
    points = [
        SeriesPoint(record["date"], to_float(record.get("value")))
        for record in payload.get("observations", [])
        if record.get("date")
    ]
    points.sort(key=lambda p: p.date)
    return points


class FredFetcher(BaseFetcher):
    """Fetches observation series from the FRED API."""

    provider_name = "fred"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key or os.environ.get("FRED_API_KEY", "")
        self._timeout = timeout
        self._transport = transport
        if not self._api_key:
            logger.warning(
                "No FRED API key found. Set FRED_API_KEY env var or pass api_key. "
                "Get a free key at https://fred.stlouisfed.org/docs/api/api_key.html"
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def health_check(self) -> bool:
        """Verify FRED API connectivity."""
        if not self._api_key:
            return False
        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{FRED_BASE_URL}/series",
                    params={
                        "series_id": "GDP",
                        "api_key": self._api_key,
                        "file_type": "json",
                    },
                )
                return resp.status_code == 200
        except httpx.HTTPError as exc:
            logger.error("FRED health check failed: %s", exc)
            return False

    async def fetch_series(
        self,
        series_id: str,
        start_date: str = FRED_HISTORY_START,
    ) -> ObservationSeries:
        """
        Fetch a specific FRED series.

        Args:
            series_id: FRED series identifier (e.g., "T10Y3M", "ICSA")
            start_date: Start date in YYYY-MM-DD format
        """
        if not self._api_key:
            logger.error("Cannot fetch FRED data without API key")
            return []

        observations: ObservationSeries = []
        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{FRED_BASE_URL}/series/observations",
                    params={
                        "series_id": series_id,
                        "api_key": self._api_key,
                        "file_type": "json",
                        "observation_start": start_date,
                        "limit": 100000,
                    },
                )
                resp.raise_for_status()
                observations = parse_observations(resp.json())

            numeric = sum(1 for p in observations if p.is_finite)
            logger.info(
                "FRED: %s → %d observations (%d numeric)",
                series_id, len(observations), numeric,
            )

        except httpx.HTTPStatusError as exc:
            logger.error(
                "FRED HTTP error for %s: %s", series_id, exc.response.status_code
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("FRED fetch failed for %s: %s", series_id, exc)

        return observations
