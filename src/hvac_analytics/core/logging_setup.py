"""
Centralized logging setup for the analytics pipeline.

Provides consistent logging across all modules with clear source identification.
"""
import logging
from pathlib import Path
from typing import Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_pipeline_logger(
    name: str,
    log_file: Optional[Path] = None,
    level: int = logging.INFO,
    console: bool = True
) -> logging.Logger:
    """
    Set up a logger with consistent formatting.

    Args:
        name: Logger name (usually the package name or a module like 'hvac_analytics.ingestion')
        log_file: Optional path to log file
        level: Logging level
        console: Whether to also log to console

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding='utf-8')
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    if console:
        ch = logging.StreamHandler()
        ch.setLevel(level)
        ch.setFormatter(formatter)
        logger.addHandler(ch)

    return logger


class PipelineLogger:
    """
    Context-aware logger that includes the dataset name in messages.

    Usage:
        logger = PipelineLogger('hvac_analytics.pipeline', dataset_name='site_a.csv')
        logger.info("Loaded 8760 rows")  # Outputs: [dataset:site_a.csv] Loaded 8760 rows
    """

    def __init__(self, module_name: str, dataset_name: str):
        self.dataset_name = dataset_name
        self.prefix = f"[dataset:{dataset_name}]"
        self._logger = logging.getLogger(module_name)

    def _format(self, msg: str) -> str:
        return f"{self.prefix} {msg}"

    def info(self, msg: str):
        self._logger.info(self._format(msg))

    def warning(self, msg: str):
        self._logger.warning(self._format(msg))

    def error(self, msg: str):
        self._logger.error(self._format(msg))

    def debug(self, msg: str):
        self._logger.debug(self._format(msg))
