"""
Configuration loader for the Budget Planner.

Loads settings from budget_planner_config.yaml and provides typed access
to all configuration sections.
"""
import os
from pathlib import Path
from typing import Optional
from functools import lru_cache

import yaml


# Default config path relative to project root
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "budget_planner_config.yaml"

DATABASE_URL_ENV = "BUDGET_PLANNER_DATABASE_URL"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class BudgetPlannerConfig:
    """
    Configuration manager for the Budget Planner.

    Loads YAML configuration and provides typed access to all sections.
    Use get_config() to obtain the singleton instance.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: dict = {}
        self._load()

    def _load(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            raise ConfigurationError(f"Config file not found: {self._config_path}")

        try:
            with open(self._config_path, 'r') as f:
                self._config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")

        if not isinstance(self._config, dict):
            raise ConfigurationError("Config file must contain a YAML mapping")

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load()
        get_config.cache_clear()

    @property
    def version(self) -> str:
        """Configuration file version."""
        return self._config.get("version", "unknown")

    # =========================================================================
    # Database
    # =========================================================================

    @property
    def database(self) -> dict:
        return self._config.get("database", {})

    @property
    def database_url(self) -> str:
        """Database URL; the environment variable wins over the file."""
        return os.environ.get(DATABASE_URL_ENV) or self.database.get(
            "url", "sqlite:///./budget_planner.db"
        )

    # =========================================================================
    # Budget Items
    # =========================================================================

    @property
    def budget(self) -> dict:
        """Budget item configuration."""
        return self._config.get("budget", {})

    @property
    def default_year(self) -> int:
        return int(self.budget.get("default_year", 2025))

    @property
    def months_per_year(self) -> int:
        return int(self.budget.get("months_per_year", 12))

    @property
    def lock_past_months(self) -> bool:
        """Whether save() rejects edits to months that already passed."""
        return bool(self.budget.get("lock_past_months", False))

    # =========================================================================
    # Revisions
    # =========================================================================

    @property
    def revisions(self) -> dict:
        return self._config.get("revisions", {})

    @property
    def default_editor_name(self) -> str:
        """Editor name recorded when a revise request omits one."""
        return self.revisions.get("default_editor_name", "Unknown")

    # =========================================================================
    # Transactions
    # =========================================================================

    @property
    def minor_units_per_unit(self) -> int:
        """Divisor that turns stored transaction cents into currency units."""
        return int(self._config.get("transactions", {}).get("minor_units_per_unit", 100))

    # =========================================================================
    # Gantt
    # =========================================================================

    @property
    def gantt(self) -> dict:
        return self._config.get("gantt", {})

    @property
    def empty_window_days(self) -> int:
        """Days shown after today when a project has no processes yet."""
        return int(self.gantt.get("empty_window_days", 90))

    # =========================================================================
    # CSV Import
    # =========================================================================

    @property
    def csv_import(self) -> dict:
        return self._config.get("csv_import", {})

    @property
    def csv_encoding(self) -> str:
        return self.csv_import.get("encoding", "utf-8")

    @property
    def csv_date_format(self) -> str:
        return self.csv_import.get("date_format", "%Y-%m-%d")

    @property
    def budget_csv_columns(self) -> dict:
        """Column headers for budget item CSV files."""
        return self.csv_import.get("budget_columns", {
            "item_id": "ItemId",
            "department": "Department",
            "group": "Group",
            "item": "Item",
            "status": "Status",
        })

    @property
    def process_csv_columns(self) -> dict:
        """Column headers for process CSV files."""
        return self.csv_import.get("process_columns", {
            "wbs": "WBS",
            "name": "Name",
            "start_date": "Start",
            "end_date": "End",
        })

    # =========================================================================
    # Logging
    # =========================================================================

    @property
    def logging(self) -> dict:
        return self._config.get("logging", {})

    @property
    def log_level(self) -> str:
        return self.logging.get("level", "INFO")

    @property
    def log_format(self) -> str:
        return self.logging.get(
            "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )


@lru_cache(maxsize=1)
def get_config(config_path: Optional[str] = None) -> BudgetPlannerConfig:
    """
    Get the singleton configuration instance.

    Args:
        config_path: Optional path to config file. Only used on first call.

    Returns:
        BudgetPlannerConfig singleton instance
    """
    path = Path(config_path) if config_path else None
    return BudgetPlannerConfig(path)


def reload_config() -> BudgetPlannerConfig:
    """Reload configuration from disk and return new instance."""
    get_config.cache_clear()
    return get_config()
