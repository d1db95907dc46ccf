"""
Parse-once dataset cache.

A DatasetCache is created once by the host (CLI, dashboard server, test) and
handed to the query facade. The readings frame is published only after a
complete, successful load; a failed load leaves the cache empty so the caller
can retry from scratch.
"""
import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from ..core.config import DEFAULT_DATASET_SOURCE, INGESTION_CHUNK_SIZE
from .csv_loader import load_readings, load_readings_async, parse_readings, YieldPoint

logger = logging.getLogger(__name__)


class DatasetCache:
    """
    Holds the ingested readings for the lifetime of the process.

    Usage:
        cache = DatasetCache('data/filtered_dataset.csv')
        readings = cache.get_or_load()          # parses
        readings = cache.get_or_load()          # cached, no re-parse
    """

    def __init__(self, source: Union[str, Path] = DEFAULT_DATASET_SOURCE,
                 chunk_size: int = INGESTION_CHUNK_SIZE):
        self.source = source
        self.chunk_size = chunk_size
        self._readings: Optional[pd.DataFrame] = None

    @classmethod
    def from_readings(cls, readings: pd.DataFrame, name: str = '<memory>') -> 'DatasetCache':
        """Wrap an already-parsed readings frame."""
        cache = cls(source=name)
        cache._readings = readings
        return cache

    @classmethod
    def from_text(cls, text: str, name: str = '<memory>',
                  chunk_size: int = INGESTION_CHUNK_SIZE) -> 'DatasetCache':
        """Parse dataset text directly (no file or network access)."""
        return cls.from_readings(parse_readings(text, chunk_size), name=name)

    @property
    def name(self) -> str:
        return Path(str(self.source)).name or str(self.source)

    @property
    def is_loaded(self) -> bool:
        return self._readings is not None

    @property
    def readings(self) -> pd.DataFrame:
        if self._readings is None:
            raise RuntimeError("Dataset not loaded yet; call get_or_load() first")
        return self._readings

    def get_or_load(self, yield_point: Optional[YieldPoint] = None) -> pd.DataFrame:
        """Return cached readings, parsing the source on first use."""
        if self._readings is not None:
            return self._readings
        readings = load_readings(self.source, self.chunk_size, yield_point)
        if self._readings is None:
            self._readings = readings
        return self._readings

    async def aget_or_load(self, yield_point: Optional[YieldPoint] = None) -> pd.DataFrame:
        """Async variant of get_or_load; yields to the event loop between chunks."""
        if self._readings is not None:
            return self._readings
        readings = await load_readings_async(self.source, self.chunk_size, yield_point)
        if self._readings is None:
            self._readings = readings
        return self._readings

    def clear(self):
        """Drop the cached readings so the next access re-parses."""
        logger.debug(f"Clearing dataset cache for {self.source}")
        self._readings = None
