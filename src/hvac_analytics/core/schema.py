"""
Result records produced by the analytics pipeline.

All records are frozen: they are pure functions of (dataset, config) and are
shared between callers through the query cache.
"""
from dataclasses import dataclass, asdict
from typing import Dict, Any, List, Optional, Tuple


@dataclass(frozen=True)
class TemperatureBin:
    """ON/OFF statistics for one 2-degree outdoor temperature bucket."""
    bin: float
    on_mean: float
    on_count: int
    on_p25: float
    on_p975: float
    off_mean: float
    off_count: int
    off_p25: float
    off_p975: float
    is_reliable: bool

    @property
    def diff(self) -> float:
        return self.on_mean - self.off_mean

    @property
    def total_count(self) -> int:
        return self.on_count + self.off_count

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ImpactMetrics:
    simple_average_diff: float
    simple_average_pct_diff: float
    weighted_average_diff: Optional[float]
    weighted_average_pct_diff: Optional[float]
    uptime: float
    uptime_corrected_diff: float
    uptime_corrected_pct_diff: float
    reliable_bins_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SavingsData:
    """Savings for one calendar day, in signal units."""
    date: str
    actual_savings: float
    potential_savings: float
    forfeited_savings: float
    uptime: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SavingsRollup:
    """Weekly or monthly aggregate of daily savings."""
    period: str        # ISO date of the first day of the week/month
    label: str         # e.g. 2024-W05 or 2024-02
    actual_savings: float
    potential_savings: float
    forfeited_savings: float
    uptime: float      # mean of the daily uptimes
    days: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DailyDistribution:
    date: str
    on_count: int
    off_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScatterPoint:
    temperature: float
    value: float
    control_state: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SignalAvailability:
    date: str
    available: int
    missing: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One row of the AI-vs-baseline view."""
    timestamp: str
    signal: Optional[float]
    signal_min: Optional[float]
    signal_max: Optional[float]
    baseline: Optional[float]
    is_ai_offline: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class OfflinePeriod:
    start: str
    end: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GroupData:
    """A comfort group: deterministic id plus its member signals."""
    group_id: str
    name: str
    signal_names: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['signal_names'] = list(self.signal_names)
        return data


@dataclass(frozen=True)
class GroupStats:
    group_id: str
    name: str
    current_average: Optional[float]
    min_value: Optional[float]
    max_value: Optional[float]
    data_point_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def records_to_dicts(records: List[Any]) -> List[Dict[str, Any]]:
    """Serialize a list of result records (used by the CLI report)."""
    return [r.to_dict() for r in records]
