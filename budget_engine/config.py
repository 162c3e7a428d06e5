"""Configuration management for the budget engine.

Reads configuration from ~/.config/budget-engine.toml and creates a default
config file if none exists.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import tomllib

import tomli_w


@dataclass
class Config:
    """Application configuration."""

    log_level: str
    log_dir: Path
    unusual_spending_threshold: float
    new_spending_floor: float
    projection_months: int
    expense_window_months: int
    trend_months: int
    trend_threshold: float

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        return cls(
            log_level="INFO",
            log_dir=Path.home() / "data" / "budget-engine" / "logs",
            unusual_spending_threshold=0.20,
            new_spending_floor=0.0,
            projection_months=12,
            expense_window_months=12,
            trend_months=3,
            trend_threshold=0.05,
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "budget-engine.toml"


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Args:
        path: Optional config file location; defaults to get_config_path().

    Returns:
        Config object with loaded or default values.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        config = Config.default()
        _write_config(config, config_path)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    defaults = Config.default()

    log_config = data.get("logging", {})
    insights = data.get("insights", {})

    return Config(
        log_level=log_config.get("level", defaults.log_level),
        log_dir=Path(log_config.get("log_dir", defaults.log_dir)),
        unusual_spending_threshold=float(
            insights.get("unusual_spending_threshold", defaults.unusual_spending_threshold)
        ),
        new_spending_floor=float(insights.get("new_spending_floor", defaults.new_spending_floor)),
        projection_months=int(insights.get("projection_months", defaults.projection_months)),
        expense_window_months=int(
            insights.get("expense_window_months", defaults.expense_window_months)
        ),
        trend_months=int(insights.get("trend_months", defaults.trend_months)),
        trend_threshold=float(insights.get("trend_threshold", defaults.trend_threshold)),
    )


def _write_config(config: Config, config_path: Path) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
        config_path: Destination file.
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "insights": {
            "unusual_spending_threshold": config.unusual_spending_threshold,
            "new_spending_floor": config.new_spending_floor,
            "projection_months": config.projection_months,
            "expense_window_months": config.expense_window_months,
            "trend_months": config.trend_months,
            "trend_threshold": config.trend_threshold,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
