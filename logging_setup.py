"""
Logging for the Streamlit app: one rotating file under the data dir.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config import LOG_FILE

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5


def setup_logging(level: str = "INFO", log_file_path: Path | None = None) -> None:
    """Send every module's ``logging.getLogger(__name__)`` output to the log file."""
    log_file = log_file_path or LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # Streamlit reruns the script on every interaction
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    handler = RotatingFileHandler(log_file, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.info(f"Logging to {log_file} (level={level})")
