"""Query facade used by the CLI and UI hosts."""

from .queries import AnalyticsPipeline

__all__ = ['AnalyticsPipeline']
