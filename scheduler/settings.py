"""
Settings and strategy file loading.

Runtime knobs come from `SLOT_HUNTER_*` environment variables; what to
reserve comes from a JSON strategy file that is re-hydrated into pydantic
models.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from models import StrategyConfig
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SLOT_HUNTER_"

# Visit-type display names accepted for each visit category
DEFAULT_VISIT_TYPES: Dict[str, List[str]] = {
    "Приём через интернет": [
        "Предварительная запись (регистратура/интернет)",
        "Запись в день приёма через интернет",
        "Запись в день приёма",
        "Приём по предварительной записи",
        "Предварительная запись через интернет",
    ],
    "Приём беременных через интернет": [
        "Приём беременных по записи через интернет",
        "Приём беременных",
    ],
}


class Settings(BaseModel):
    """Process-wide knobs. Durations are in seconds."""

    interval: float = Field(default=10.0, gt=0, description="Cadence of rounds per strategy")
    auto_complete_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Force shutdown after this long, whatever the completion state"
    )
    shutdown_on_complete: bool = Field(default=False, description="Power the host off after the run")
    shutdown_timeout: int = Field(default=60, ge=1, description="Countdown before power-off")
    employees_update_interval: float = Field(default=6 * 3600, gt=0)
    providers_update_interval: float = Field(default=24 * 3600, gt=0)
    debug: bool = Field(default=True, description="Simulate the power-off instead of running it")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            values[name] = raw
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings in environment: {e}") from e


class StrategyFile(BaseModel):
    """Top-level shape of the strategy JSON file."""

    visit_types: Dict[str, List[str]] = Field(default_factory=lambda: dict(DEFAULT_VISIT_TYPES))
    strategies: List[StrategyConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_categories(self):
        for strategy in self.strategies:
            for entries in strategy.entries.values():
                for entry in entries:
                    unknown = [c for c in entry.categories if c not in self.visit_types]
                    if unknown:
                        raise ValueError(f"Unknown visit categories {unknown} in strategy for '{strategy.person}'")
        return self


def load_strategy_file(path: Union[str, Path]) -> StrategyFile:
    """Read and validate a strategy file. Every failure is a ConfigurationError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Strategy file {path} not found") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Strategy file {path} is not valid JSON: {e}") from e

    try:
        strategy_file = StrategyFile.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Strategy file {path} is invalid: {e}") from e

    logger.info(f"Loaded {len(strategy_file.strategies)} strategies from {path}")
    return strategy_file
