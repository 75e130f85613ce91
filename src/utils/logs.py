"""Structured logging setup for batch jobs."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from src.config import settings


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName
        }
        if hasattr(record, "duration"):
            log_entry["duration_seconds"] = record.duration
        return json.dumps(log_entry)


def setup_job_logging(job_name: str, log_dir: Optional[Path] = None, level: int = logging.INFO) -> Path:
    """
    Configure the root logger with a JSON file handler and a console handler.

    Safe to call more than once: handlers are only attached the first time.

    Args:
        job_name: Log file stem, e.g. "auto_assign_leads"
        log_dir: Directory for log files (uses settings if not provided)
        level: Root log level

    Returns:
        Path of the JSON log file
    """
    log_dir = Path(log_dir or settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{job_name}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if any(getattr(h, "_job_log_file", None) == str(log_file) for h in root_logger.handlers):
        return log_file

    # Setup file handler with JSON formatter
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(JSONFormatter())
    file_handler._job_log_file = str(log_file)

    # Setup console handler with standard format
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    console_handler._job_log_file = str(log_file)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    return log_file
