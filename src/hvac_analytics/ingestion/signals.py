"""
Signal catalogue: which columns of a dataset are monitored points, and how
they group into categories.
"""
import re
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from ..core.config import RESERVED_COLUMNS, AVERAGE_SIGNAL


@dataclass(frozen=True)
class SignalCategory:
    """A named family of signals selected by a regex on the column name."""
    id: str
    name: str
    pattern: str
    has_normalization: bool = False
    has_affinity_law: bool = False
    has_temperature_diff: bool = False

    def matches(self, column: str) -> bool:
        return re.search(self.pattern, column) is not None


SIGNAL_CATEGORIES = [
    SignalCategory('vs_vsgt', 'Heating Circuit Temp.', r'^VS\d+_GT\d+$', has_normalization=True),
    SignalCategory('vs_lbgt', 'AHU Supply Air Temp.', r'^LB\d+_GT\d+$', has_temperature_diff=True),
    SignalCategory('vs_lbgp', 'AHU Pressure', r'^LB\d+_GP\d+$', has_affinity_law=True),
    SignalCategory('os_deg', 'Sensor Temp.', r'_temperature$'),
]


def available_signals(readings: pd.DataFrame) -> List[str]:
    """Signal columns of a readings frame, in dataset order."""
    return [c for c in readings.columns if c not in RESERVED_COLUMNS and c != AVERAGE_SIGNAL]


def get_category(category_id: str) -> Optional[SignalCategory]:
    for category in SIGNAL_CATEGORIES:
        if category.id == category_id:
            return category
    return None


def signals_for_category(category: SignalCategory, columns: List[str]) -> List[str]:
    """Columns belonging to a category (reserved columns never match)."""
    return [c for c in columns if c not in RESERVED_COLUMNS and category.matches(c)]
