# HVAC AI-control analytics pipeline
"""
Modular structure:
- core/: Configuration, result records, logging
- ingestion/: Chunked CSV loading, parse-once dataset cache, signal catalogue
- classification/: Day-level AI ON/OFF classification
- filtering/: Composable row filters (control days, temperature, hour, day type)
- metrics/: Temperature binning, impact metrics, savings, distributions
- baseline/: Counterfactual OFF-state baseline estimation
- comfort/: Deterministic comfort-group averaging
- pipeline/: Query facade used by the dashboard views
"""

from . import core
from . import ingestion
from . import classification
from . import filtering
from . import metrics
from . import baseline
from . import comfort
from . import pipeline

__version__ = "0.1.0"

__all__ = [
    'core',
    'ingestion',
    'classification',
    'filtering',
    'metrics',
    'baseline',
    'comfort',
    'pipeline',
]
