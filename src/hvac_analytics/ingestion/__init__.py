"""Dataset ingestion: chunked CSV parsing, parse-once cache, signal catalogue."""

from .csv_loader import (
    DatasetLoadError,
    create_session,
    read_source_text,
    parse_header,
    iter_reading_chunks,
    parse_readings,
    load_readings,
    load_readings_async,
    empty_readings,
)
from .cache import DatasetCache
from .signals import (
    SignalCategory,
    SIGNAL_CATEGORIES,
    available_signals,
    get_category,
    signals_for_category,
)

__all__ = [
    'DatasetLoadError',
    'create_session',
    'read_source_text',
    'parse_header',
    'iter_reading_chunks',
    'parse_readings',
    'load_readings',
    'load_readings_async',
    'empty_readings',
    'DatasetCache',
    'SignalCategory',
    'SIGNAL_CATEGORIES',
    'available_signals',
    'get_category',
    'signals_for_category',
]
