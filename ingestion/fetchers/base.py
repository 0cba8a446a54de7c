"""
Base fetcher interface for observation-series providers.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from processing.series import ObservationSeries

logger = logging.getLogger(__name__)


class BaseFetcher(ABC):
    """Abstract base for all data source fetchers."""

    provider_name: str = "base"

    @abstractmethod
    async def fetch_series(
        self,
        series_id: str,
        start_date: str = "1950-01-01",
    ) -> ObservationSeries:
        """
        Fetch the full history of one series.
        Returns observations in ascending date order (empty on failure).
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Verify the API is reachable and responding."""
        ...
