"""Application Settings and Configuration.

This module provides application-wide settings that combine the cleaning
configuration from the configuration manager with application defaults.
"""

import os
from typing import Optional

from pressure_sieve.infrastructure.config_manager import CleaningConfig, ConfigManager

# Application metadata
APP_NAME = "Pressure-Sieve"
APP_VERSION = "1.0.0"

DEFAULT_OUTPUT_FILE = "bp_measurements_processed.json"


class Settings:
    """Application settings loaded from the environment.

    Cleaning parameters (bounds, token format, test-record cut-off) are
    loaded lazily through ConfigManager on first access.
    """

    def __init__(self):
        self._cleaning_config: Optional[CleaningConfig] = None

        self.app_name = os.getenv("PS_APP_NAME", APP_NAME)
        self.log_level = os.getenv("PS_LOG_LEVEL", "INFO")
        self.log_json = os.getenv("PS_LOG_JSON", "false").lower() == "true"

        self.output_file = os.getenv("PS_OUTPUT_FILE", DEFAULT_OUTPUT_FILE)

        # Cleaning report settings
        self.save_cleaning_report = os.getenv("PS_SAVE_CLEANING_REPORT", "true").lower() == "true"
        self.report_dir = os.getenv("PS_REPORT_DIR", "reports")

    @property
    def cleaning_config(self) -> CleaningConfig:
        if self._cleaning_config is None:
            self._cleaning_config = ConfigManager.from_environment().get_cleaning_config()
        return self._cleaning_config

    def reload(self) -> None:
        """Drop the cached cleaning configuration (e.g. after changing the environment)."""
        self._cleaning_config = None


# Global settings instance
settings = Settings()
