"""
Logging setup for the rusp command-line driver.

Interpreter diagnostics never share stdout with the running program: records
go to stderr unless `--log-file` names a file.
"""
import logging
import os
import sys
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """
    Installs the root handler for a rusp run, replacing any earlier one.

    Args:
        level: Level name such as "DEBUG" or "INFO"; unknown names fall back to WARNING.
        log_file: File to append records to. Its directory is created when missing.
    """
    options: Dict[str, Any] = {
        "level": getattr(logging, level.upper(), logging.WARNING),
        "format": LOG_FORMAT,
        "force": True,
    }
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        options["filename"] = log_file
    else:
        options["stream"] = sys.stderr

    logging.basicConfig(**options)
    logging.getLogger(__name__).info(f"rusp logging at {level.upper()} to {log_file or 'stderr'}")
