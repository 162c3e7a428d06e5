import logging
import tomllib
from pathlib import Path

import tomli_w

from budget_engine.config import Config, load_config
from budget_engine.logger import get_logger, setup_logging


def test_load_config_creates_default_file(tmp_path):
    path = tmp_path / "config" / "budget-engine.toml"
    config = load_config(path)

    assert path.exists()
    assert config == Config.default()
    with open(path, "rb") as f:
        data = tomllib.load(f)
    assert data["insights"]["unusual_spending_threshold"] == 0.2
    assert data["logging"]["level"] == "INFO"


def test_load_config_reads_values_with_defaults(tmp_path):
    path = tmp_path / "budget-engine.toml"
    with open(path, "wb") as f:
        tomli_w.dump(
            {
                "logging": {"level": "DEBUG", "log_dir": str(tmp_path / "logs")},
                "insights": {"unusual_spending_threshold": 0.35, "projection_months": 6},
            },
            f,
        )

    config = load_config(path)
    assert config.log_level == "DEBUG"
    assert config.log_dir == tmp_path / "logs"
    assert config.unusual_spending_threshold == 0.35
    assert config.projection_months == 6
    assert config.trend_months == 3
    assert config.new_spending_floor == 0.0


def test_setup_logging_writes_file(tmp_path):
    config = Config.default()
    config.log_dir = tmp_path / "logs"
    config.log_level = "DEBUG"

    logger = setup_logging(config)
    try:
        assert logger is get_logger()
        assert logger.level == logging.DEBUG
        logger.info("hello from the engine")
        for handler in logger.handlers:
            handler.flush()

        files = list(Path(config.log_dir).glob("budget-engine-*.log"))
        assert len(files) == 1
        assert "hello from the engine" in files[0].read_text()

        # calling again replaces handlers instead of stacking them
        setup_logging(config)
        assert len(logger.handlers) == 2
    finally:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
