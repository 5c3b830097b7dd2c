"""Configuration Manager for cleaning parameters.

This module loads the tunable parameters of a cleaning run (physiological
bounds, the test-record cut-off and the anonymization token format) from the
environment or from a JSON file, and validates them before use.

Data Integrity Impact:
    - Bounds are validated (lower < upper) before any record is checked
    - Invalid configuration fails fast, before the snapshot is loaded

Architecture:
    - Follows Hexagonal Architecture: Infrastructure layer isolated from domain
    - Type-safe configuration using Pydantic models
    - .env files are read through python-dotenv
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from pressure_sieve.domain.golden_record import DIA_A, DIA_O, MAP_O, SYS_A, SYS_O
from pressure_sieve.domain.services.range_validator import Bound

logger = logging.getLogger(__name__)


class BoundConfig(BaseModel):
    """Closed interval [lower, upper] read from configuration."""

    lower: float
    upper: float

    @model_validator(mode="after")
    def check_order(self) -> 'BoundConfig':
        if self.lower >= self.upper:
            raise ValueError(f"lower ({self.lower}) must be below upper ({self.upper})")
        return self

    def to_bound(self) -> Bound:
        return Bound(self.lower, self.upper)


class PressureBounds(BaseModel):
    """Physiological bounds in mmHg."""

    systolic: BoundConfig = Field(default_factory=lambda: BoundConfig(lower=50, upper=250))
    diastolic: BoundConfig = Field(default_factory=lambda: BoundConfig(lower=30, upper=150))
    mean: BoundConfig = Field(default_factory=lambda: BoundConfig(lower=40, upper=160))


class CleaningConfig(BaseModel):
    """Parameters of one cleaning run.

    Parameters:
        pressure: Bounds for systolic, diastolic and mean pressure
        bmi: BMI bounds
        min_patient_record_id: Records with a lower ID are platform test entries
        token_prefix: Prefix of anonymized patient tokens
        token_width: Zero-padded digit count of anonymized patient tokens
        strict_vocabulary: Abort on categorical values outside the vocabulary
    """

    pressure: PressureBounds = Field(default_factory=PressureBounds)
    bmi: BoundConfig = Field(default_factory=lambda: BoundConfig(lower=15, upper=60))
    min_patient_record_id: int = Field(default=100, ge=0)
    token_prefix: str = Field(default="pac_")
    token_width: int = Field(default=4, ge=1, le=9)
    strict_vocabulary: bool = False

    def pressure_bounds(self) -> dict[str, Bound]:
        """Pressure field (wire name) -> Bound."""
        systolic = self.pressure.systolic.to_bound()
        diastolic = self.pressure.diastolic.to_bound()
        return {
            SYS_A: systolic,
            DIA_A: diastolic,
            SYS_O: systolic,
            DIA_O: diastolic,
            MAP_O: self.pressure.mean.to_bound(),
        }

    def bmi_bound(self) -> Bound:
        return self.bmi.to_bound()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class ConfigManager:
    """Configuration manager for cleaning parameters.

    Example Usage:
        ```python
        # Load from environment variables (and .env)
        config = ConfigManager.from_environment().get_cleaning_config()

        # Load from file
        config = ConfigManager.from_file("cleaning.json").get_cleaning_config()
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        self._config_data = config_data
        self._cleaning_config: Optional[CleaningConfig] = None

    @classmethod
    def from_environment(cls, env_file: Optional[str] = None) -> 'ConfigManager':
        """Load configuration from environment variables.

        Environment Variables:
            - PS_CONFIG_FILE: JSON file with bounds (environment values override it)
            - PS_MIN_PATIENT_RECORD_ID: Test-record cut-off (default 100)
            - PS_TOKEN_PREFIX: Anonymized token prefix (default pac_)
            - PS_TOKEN_WIDTH: Anonymized token digits (default 4)
            - PS_STRICT_VOCABULARY: Abort on unknown categorical values (default false)

        Parameters:
            env_file: .env file to load (defaults to .env in the working directory)

        Returns:
            ConfigManager instance
        """
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded environment variables from {env_path}")

        config_data: Dict[str, Any] = {}
        config_file = os.getenv("PS_CONFIG_FILE")
        if config_file:
            config_data = cls.from_file(config_file)._config_data

        overrides = {
            "min_patient_record_id": os.getenv("PS_MIN_PATIENT_RECORD_ID"),
            "token_prefix": os.getenv("PS_TOKEN_PREFIX"),
            "token_width": os.getenv("PS_TOKEN_WIDTH"),
        }
        config_data.update({k: v for k, v in overrides.items() if v is not None})
        if os.getenv("PS_STRICT_VOCABULARY") is not None:
            config_data["strict_vocabulary"] = _env_bool("PS_STRICT_VOCABULARY")

        return cls(config_data)

    @classmethod
    def from_file(cls, config_path: str) -> 'ConfigManager':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is not valid JSON
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")

        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration file must contain a JSON object: {config_path}")
        return cls(config_data)

    def get_cleaning_config(self) -> CleaningConfig:
        """Validated cleaning configuration.

        Raises:
            pydantic.ValidationError: If any value is invalid
        """
        if self._cleaning_config is None:
            self._cleaning_config = CleaningConfig(**self._config_data)
        return self._cleaning_config
