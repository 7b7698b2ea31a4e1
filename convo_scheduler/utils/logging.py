"""Logging setup with verbosity levels and file logging."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

VERBOSITY_FLAGS = {"-v": 1, "-vv": 2, "-vvv": 3}

# Client libraries that log every HTTP request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "google_genai")


def level_for_verbosity(verbosity: int) -> int:
    """Console level: 0=WARNING, 1=INFO, 2 or more=DEBUG."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    stream: TextIO = sys.stderr,
) -> logging.Logger:
    """
    Set up console and file logging.

    The console handler follows the verbosity; the file handler always
    records DEBUG with function and line. Verbosity 3 also lets the
    HTTP client libraries log below WARNING.

    Args:
        verbosity: Verbosity level (0-3)
        log_file: Optional log file path. If None, logs/log_<timestamp>.log
        stream: Console stream (stderr keeps stdout free for the conversation)

    Returns:
        Configured logger instance
    """
    if log_file is None:
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = logs_dir / f"log_{timestamp}.log"
    else:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level_for_verbosity(verbosity))
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbosity >= 3 else logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized. Verbosity: {verbosity}, Log file: {log_path}")
    return logger


def parse_verbosity(args: List[str]) -> int:
    """
    Parse verbosity level from command line arguments.

    Args:
        args: Command line arguments

    Returns:
        Verbosity level (0-3); the last flag wins
    """
    verbosity = 0
    for arg in args:
        if arg in VERBOSITY_FLAGS:
            verbosity = VERBOSITY_FLAGS[arg]
    return verbosity


def strip_verbosity_flags(args: List[str]) -> List[str]:
    """Return the arguments without -v/-vv/-vvv."""
    return [arg for arg in args if arg not in VERBOSITY_FLAGS]
