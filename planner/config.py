"""
Planner configuration.

Defaults describe the reference board: a 7x7 grid with the hero at (3, 3) and
a 5x3 starting rectangle unlocked around it. Any value can be overridden with
a PLANNER_* environment variable (the CLI loads a .env file first).
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)


ENV_PREFIX = "PLANNER_"

# Environment suffix -> config field.
_ENV_FIELDS = {
    "GRID_WIDTH": "grid_width",
    "GRID_HEIGHT": "grid_height",
    "HISTORY_LIMIT": "history_limit",
    "DRAG_THRESHOLD": "drag_threshold",
    "ITEMS_PATH": "items_path",
    "TRINKETS_PATH": "trinkets_path",
}


class StartRect(BaseModel):
    """Inclusive cell rectangle that is unlocked on a fresh board."""
    model_config = ConfigDict(frozen=True)

    x_min: int = 1
    x_max: int = 5
    y_min: int = 2
    y_max: int = 4


class PlannerConfig(BaseModel):
    """Board geometry and interaction settings."""
    model_config = ConfigDict(frozen=True)

    grid_width: int = Field(default=7, ge=1)
    grid_height: int = Field(default=7, ge=1)
    hero_start: tuple[int, int] = (3, 3)
    start_unlocked: StartRect = Field(default_factory=StartRect)
    history_limit: int = Field(default=100, ge=1)
    # Pixels a pressed tile must travel before a reposition drag starts.
    drag_threshold: float = Field(default=6.0, ge=0)
    items_path: Path | None = None
    trinkets_path: Path | None = None


def load_config(environ: Mapping[str, str] | None = None) -> PlannerConfig:
    """
    Build a PlannerConfig from defaults plus PLANNER_* environment overrides.

    Raises pydantic.ValidationError if an override has the wrong type.
    """
    env = os.environ if environ is None else environ

    overrides: dict[str, str] = {}
    for suffix, field_name in _ENV_FIELDS.items():
        value = env.get(ENV_PREFIX + suffix)
        if value:
            overrides[field_name] = value

    config = PlannerConfig.model_validate(overrides)
    if overrides:
        logger.debug("Config overrides from environment: %s", sorted(overrides))
    return config
