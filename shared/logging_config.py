# =============================================================================
# DIP REGISTRY - LOGGING CONFIGURATION
# =============================================================================
#
# Operational logs go to logs/registry/, one timestamped file per run.
# Audit records (registrations, transitions) go to logs/audit/ as JSON
# lines and are kept apart from operational logs.
#
# =============================================================================

import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from shared.config import BASE_DIR


ROOT_LOGGER_NAME = "dips"
PACKAGE_LOGGERS = (ROOT_LOGGER_NAME, "shared")
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _get_log_dir(log_dir: Optional[Path] = None) -> Path:
    if log_dir is not None:
        return Path(log_dir)
    return BASE_DIR / "logs"


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(
    level=logging.INFO,
    console_output: bool = True,
    file_output: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure logging for the registry.

    Args:
        level: Logging level (int or name such as "DEBUG")
        console_output: Whether to log to console
        file_output: Whether to log to file
        log_dir: Base log directory (default: logs/ under BASE_DIR)

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = []

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    log_file = None
    if file_output:
        registry_log_dir = _get_log_dir(log_dir) / "registry"
        registry_log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = registry_log_dir / f"registry_{timestamp}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Both packages share the same handlers
    for name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        package_logger.setLevel(level)
        for old_handler in package_logger.handlers[:]:
            package_logger.removeHandler(old_handler)
            old_handler.close()
        for handler in handlers:
            package_logger.addHandler(handler)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.debug(f"Logging initialized for {', '.join(PACKAGE_LOGGERS)}")
    if log_file is not None:
        logger.debug(f"Log file: {log_file}")
    return logger


# =============================================================================
# AUDIT LOGGING
# =============================================================================

class AuditLogger:
    """
    Logger for audit-grade registry records.

    Audit records are:
    - Always written to file, one JSON object per line
    - Stored separately from operational logs
    - Stamped with a SHA-256 hash of their details for traceability
    """

    def __init__(self, log_dir: Optional[Path] = None):
        audit_dir = _get_log_dir(log_dir) / "audit"
        audit_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d")
        self.audit_file = audit_dir / f"audit_registry_{timestamp}.jsonl"

        self.logger = logging.getLogger("audit.registry")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        self.logger.handlers.clear()

        handler = logging.FileHandler(self.audit_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.logger.addHandler(handler)

    @staticmethod
    def _compute_hash(data: dict) -> str:
        """SHA-256 of the deterministic JSON form of data."""
        serialized = json.dumps(data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(serialized.encode('utf-8')).hexdigest()

    def log_event(self, event_type: str, details: dict) -> None:
        """
        Log an audit event.

        Args:
            event_type: Type of event being logged
            details: Event details as a dictionary
        """
        record = {
            "timestamp": datetime.now().isoformat(),
            "event": event_type,
            "details": details,
            "details_hash": self._compute_hash(details),
        }
        self.logger.info(json.dumps(record, ensure_ascii=False))

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)
