# =============================================================================
# AUGUR FORK RISK MONITOR - LOGGING CONFIGURATION
# =============================================================================
#
# Each run logs to the console and to its own timestamped file:
#   logs/fork_risk/fork_risk_<YYYYmmdd_HHMMSS>.log
#
# The file is the audit trail of a run: which endpoint was used, which
# chunks were skipped, which markets lost their details.
#
# =============================================================================

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO/DEBUG
NOISY_LOGGERS = ("web3", "aiohttp", "urllib3", "asyncio")


def _get_project_root() -> Path:
    """Get the project root directory."""
    # This file is at shared/logging_config.py
    return Path(__file__).parent.parent


def get_log_dir() -> Path:
    """Directory holding per-run log files."""
    return _get_project_root() / "logs" / "fork_risk"


def setup_logging(
    level: int = logging.INFO,
    console_output: bool = True,
    file_output: bool = True,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Configure root logging for a calculator run.

    Args:
        level: Logging level
        console_output: Whether to log to stdout
        file_output: Whether to log to a per-run file
        log_dir: Override for the log directory (defaults to logs/fork_risk)

    Returns:
        Path of the log file, or None if file output is disabled
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    log_file = None
    if file_output:
        directory = log_dir or get_log_dir()
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = directory / f"fork_risk_{timestamp}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized")
    if log_file:
        logger.info(f"Log file: {log_file}")

    return log_file
