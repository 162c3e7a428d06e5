"""Logging configuration for the budget engine.

Sets up logging to both file (with date-based naming) and console.
"""

import logging
from datetime import date

from budget_engine.config import Config


def setup_logging(config: Config) -> logging.Logger:
    """Set up application logging with file and console handlers.

    Args:
        config: Application configuration containing log settings.

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("budget_engine")
    logger.setLevel(config.log_level)

    # Clear any existing handlers (in case this is called multiple times)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter("%(levelname)s - %(message)s")

    log_file_path = config.log_dir / f"budget-engine-{date.today().isoformat()}.log"
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(config.log_level)
    file_handler.setFormatter(detailed_formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(config.log_level)
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger."""
    return logging.getLogger("budget_engine")
