"""
Chunked CSV ingestion for building sensor datasets.

The dataset is a delimited text file with a header row. Columns are
positional:

    timestamp, <control flag>, <signal_1> ... <signal_N>, <control intensity>, <outdoor temperature>

Rows are parsed in fixed-size chunks. Between chunks the loader hands control
to an injected yield point (synchronous callback) or, in the async variant,
back to the event loop, so that a dataset of several hundred thousand rows
never blocks an interactive host for the whole parse.

Failure handling:
  - Read/network/header failures raise DatasetLoadError.
  - Rows whose field count differs from the header are dropped.
  - Unparsable numeric cells become missing (NaN).
  - Rows with an unparsable timestamp are dropped.
"""
import asyncio
import csv
import logging
from itertools import islice
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Union

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..core.config import (
    TIMESTAMP_COL,
    CONTROL_STATE_COL,
    CONTROL_INTENSITY_COL,
    TEMPERATURE_COL,
    INGESTION_CHUNK_SIZE,
    HTTP_TIMEOUT,
)

logger = logging.getLogger(__name__)

YieldPoint = Callable[[int], None]

MIN_HEADER_COLUMNS = 4

# Time of day followed by 'Z' or a +HH:MM / -HHMM offset at the end of the cell
TRAILING_OFFSET = r'(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)(?:Z|[+-]\d{2}(?::?\d{2})?)$'


class DatasetLoadError(IOError):
    """Raised when the dataset cannot be read or has no usable header."""


# ============================================================================
# Source reading
# ============================================================================

def create_session() -> requests.Session:
    """Create a requests session with retry strategy."""
    session = requests.Session()
    retry_strategy = Retry(
        total=3,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def is_url(source: Union[str, Path]) -> bool:
    return isinstance(source, str) and source.lower().startswith(('http://', 'https://'))


def read_source_text(source: Union[str, Path], timeout: float = HTTP_TIMEOUT) -> str:
    """
    Read the raw dataset text from a local path or an http(s) URL.

    Raises:
        DatasetLoadError: If the file cannot be read or the request fails
    """
    if is_url(source):
        try:
            with create_session() as session:
                response = session.get(source, timeout=timeout)
                response.raise_for_status()
                return response.text
        except requests.RequestException as e:
            raise DatasetLoadError(f"Failed to fetch dataset from {source}: {e}") from e

    try:
        return Path(source).read_text(encoding='utf-8-sig')
    except OSError as e:
        raise DatasetLoadError(f"Failed to read dataset {source}: {e}") from e


# ============================================================================
# Parsing
# ============================================================================

def parse_header(line: str) -> List[str]:
    """Split the header line, honouring quoted names."""
    header = [name.strip() for name in next(csv.reader([line]))]
    if len(header) < MIN_HEADER_COLUMNS:
        raise DatasetLoadError(
            f"Header has {len(header)} columns, expected at least {MIN_HEADER_COLUMNS}: {line!r}"
        )
    return header


def signal_names_from_header(header: List[str]) -> List[str]:
    """Signal columns sit between the control flag and the two trailing columns."""
    return header[2:-2]


def _frame_columns(header: List[str]) -> List[str]:
    return [TIMESTAMP_COL, CONTROL_STATE_COL] + signal_names_from_header(header) + \
        [CONTROL_INTENSITY_COL, TEMPERATURE_COL]


def empty_readings(signal_names: Optional[List[str]] = None) -> pd.DataFrame:
    """An empty readings frame with the standard dtypes."""
    signal_names = signal_names or []
    data = {
        TIMESTAMP_COL: pd.Series([], dtype='datetime64[ns]'),
        CONTROL_STATE_COL: pd.Series([], dtype='int64'),
    }
    for name in signal_names:
        data[name] = pd.Series([], dtype='float64')
    data[CONTROL_INTENSITY_COL] = pd.Series([], dtype='float64')
    data[TEMPERATURE_COL] = pd.Series([], dtype='float64')
    return pd.DataFrame(data)


def _clean(series: pd.Series) -> pd.Series:
    return series.str.strip().str.strip('"\'')


def _parse_timestamps(series: pd.Series) -> pd.Series:
    # Drop any UTC offset and keep wall-clock time; day and hour boundaries follow
    # the site's local clock, and offsets may change mid-file at DST switches
    naive = _clean(series).str.replace(TRAILING_OFFSET, r'\1', regex=True)
    return pd.to_datetime(naive, format='ISO8601', errors='coerce')


def _records_to_frame(records: List[List[str]], header: List[str]) -> pd.DataFrame:
    """Convert raw string records into a typed readings frame."""
    signal_names = signal_names_from_header(header)
    if not records:
        return empty_readings(signal_names)

    raw = pd.DataFrame(records, columns=_frame_columns(header), dtype=str)

    frame = pd.DataFrame({TIMESTAMP_COL: _parse_timestamps(raw[TIMESTAMP_COL])})
    flag = pd.to_numeric(_clean(raw[CONTROL_STATE_COL]), errors='coerce')
    frame[CONTROL_STATE_COL] = (flag == 1).astype('int64')
    for name in signal_names + [CONTROL_INTENSITY_COL, TEMPERATURE_COL]:
        frame[name] = pd.to_numeric(_clean(raw[name]), errors='coerce').astype('float64')

    return frame[frame[TIMESTAMP_COL].notna()].reset_index(drop=True)


def _batched(lines: Iterable[str], size: int) -> Iterator[List[str]]:
    iterator = iter(lines)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


def iter_reading_chunks(
    lines: Iterable[str],
    header: List[str],
    chunk_size: int = INGESTION_CHUNK_SIZE,
) -> Iterator[pd.DataFrame]:
    """
    Parse data lines into typed frames, one chunk at a time.

    Args:
        lines: Data lines (header excluded)
        header: Parsed header row
        chunk_size: Number of lines per chunk

    Yields:
        DataFrame per chunk (possibly empty when every line was malformed)
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    expected = len(header)
    for batch in _batched(lines, chunk_size):
        records = []
        dropped = 0
        for row in csv.reader(line for line in batch if line.strip()):
            if len(row) != expected:
                dropped += 1
                continue
            records.append(row)
        if dropped:
            logger.debug(f"Dropped {dropped} malformed rows in chunk")
        yield _records_to_frame(records, header)


def _split_text(text: str):
    lines = text.strip().splitlines()
    if not lines or not lines[0].strip():
        raise DatasetLoadError("Dataset is empty: no header row")
    return parse_header(lines[0]), lines[1:]


def _finalize(frames: List[pd.DataFrame], header: List[str], total_lines: int) -> pd.DataFrame:
    frames = [f for f in frames if len(f) > 0]
    if frames:
        readings = pd.concat(frames, ignore_index=True)
        readings = readings.sort_values(TIMESTAMP_COL, kind='mergesort').reset_index(drop=True)
    else:
        readings = empty_readings(signal_names_from_header(header))

    skipped = total_lines - len(readings)
    logger.info(
        f"Parsed {len(readings)} readings with {len(signal_names_from_header(header))} signals"
        + (f" ({skipped} blank or malformed lines skipped)" if skipped else "")
    )
    return readings


def parse_readings(
    text: str,
    chunk_size: int = INGESTION_CHUNK_SIZE,
    yield_point: Optional[YieldPoint] = None,
) -> pd.DataFrame:
    """
    Parse dataset text synchronously, calling `yield_point(rows_parsed)` after each chunk.

    Returns:
        DataFrame with columns: timestamp, control_state, <signals...>,
        control_intensity, outdoor_temperature (sorted by timestamp)
    """
    header, lines = _split_text(text)
    frames = []
    parsed = 0
    for chunk in iter_reading_chunks(lines, header, chunk_size):
        frames.append(chunk)
        parsed += len(chunk)
        if yield_point is not None:
            yield_point(parsed)
    return _finalize(frames, header, len(lines))


def load_readings(
    source: Union[str, Path],
    chunk_size: int = INGESTION_CHUNK_SIZE,
    yield_point: Optional[YieldPoint] = None,
) -> pd.DataFrame:
    """Read and parse a dataset from a path or URL."""
    logger.info(f"Loading dataset from {source}")
    return parse_readings(read_source_text(source), chunk_size, yield_point)


async def load_readings_async(
    source: Union[str, Path],
    chunk_size: int = INGESTION_CHUNK_SIZE,
    yield_point: Optional[YieldPoint] = None,
) -> pd.DataFrame:
    """
    Cooperative variant of load_readings.

    The source is read in a worker thread, and control returns to the
    running event loop between chunks.
    """
    logger.info(f"Loading dataset from {source}")
    text = await asyncio.to_thread(read_source_text, source)
    header, lines = _split_text(text)
    frames = []
    parsed = 0
    for chunk in iter_reading_chunks(lines, header, chunk_size):
        frames.append(chunk)
        parsed += len(chunk)
        if yield_point is not None:
            yield_point(parsed)
        await asyncio.sleep(0)
    return _finalize(frames, header, len(lines))
