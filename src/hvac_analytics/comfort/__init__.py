"""Deterministic comfort-group averaging."""

from .groups import (
    comfort_signals,
    partition_seed,
    deterministic_shuffle,
    partition_groups,
    group_time_series,
    calculate_overall_stats,
    calculate_group_stats,
    comfort_groups,
)

__all__ = [
    'comfort_signals',
    'partition_seed',
    'deterministic_shuffle',
    'partition_groups',
    'group_time_series',
    'calculate_overall_stats',
    'calculate_group_stats',
    'comfort_groups',
]
