"""Engine settings resolved from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from sizing.progression import ProgressionMode
from sizing.units import DEFAULT_UNIT, MeasurementUnit

MODE_ENV_VAR = "SIZING_PROGRESSION_MODE"
UNIT_ENV_VAR = "SIZING_DEFAULT_UNIT"
BASE_SIZE_ENV_VAR = "SIZING_DEFAULT_BASE_SIZE"
DRAFT_DIR_ENV_VAR = "SIZING_DRAFT_DIR"
DRAFT_DELAY_ENV_VAR = "SIZING_DRAFT_DELAY"

DEFAULT_DRAFT_DIR = Path("data/drafts")
DEFAULT_DRAFT_DELAY = 1.5


@dataclass(frozen=True)
class Settings:
    progression_mode: ProgressionMode = ProgressionMode.STRICT
    default_unit: MeasurementUnit = DEFAULT_UNIT
    default_base_size: str | None = None
    draft_dir: Path = DEFAULT_DRAFT_DIR
    draft_delay: float = DEFAULT_DRAFT_DELAY

    @classmethod
    def from_env(cls) -> "Settings":
        delay_raw = os.environ.get(DRAFT_DELAY_ENV_VAR)
        try:
            draft_delay = float(delay_raw) if delay_raw else DEFAULT_DRAFT_DELAY
        except ValueError:
            draft_delay = DEFAULT_DRAFT_DELAY

        return cls(
            progression_mode=ProgressionMode.coerce(os.environ.get(MODE_ENV_VAR)),
            default_unit=MeasurementUnit.coerce(os.environ.get(UNIT_ENV_VAR)),
            default_base_size=(os.environ.get(BASE_SIZE_ENV_VAR) or "").strip() or None,
            draft_dir=Path(os.environ.get(DRAFT_DIR_ENV_VAR) or DEFAULT_DRAFT_DIR).expanduser(),
            draft_delay=max(draft_delay, 0.0),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for the running process; cached after the first lookup."""
    return Settings.from_env()
