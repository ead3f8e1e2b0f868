"""Logging configuration for the relay."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

RELAY_LOGGER = "tracker_relay"


def configure_logging(
    log_level: str,
    log_file: Path | None = None,
    rotate: bool = True,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """Configure the relay logger.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path; stderr is used when omitted.
        rotate: Rotate the log file once it reaches ``max_bytes``.
        max_bytes: Rotation threshold in bytes.
        backup_count: Number of rotated files to keep.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    relay_logger = logging.getLogger(RELAY_LOGGER)
    relay_logger.setLevel(level)
    relay_logger.propagate = False
    # Reconfiguring must not stack handlers
    relay_logger.handlers.clear()

    if level == logging.DEBUG:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    handler: logging.Handler
    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            if rotate:
                handler = RotatingFileHandler(
                    log_file,
                    mode="a",
                    maxBytes=max_bytes,
                    backupCount=backup_count,
                    encoding="utf-8",
                )
            else:
                handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            relay_logger.addHandler(handler)
            relay_logger.warning(f"Could not set up file logging to {log_file}: {e}")
            return
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)
    relay_logger.addHandler(handler)
