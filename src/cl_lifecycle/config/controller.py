"""Dry-run/apply controller defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_flag

DRY_RUN_ENV: Final[str] = "CL_DRY_RUN"
FORCE_ENV: Final[str] = "CL_FORCE"


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    dry_run: bool = False
    force: bool = False


def get_controller_config() -> ControllerConfig:
    return ControllerConfig(dry_run=env_flag(DRY_RUN_ENV), force=env_flag(FORCE_ENV))
