"""Runtime settings read from the environment and ``.env`` files.

Variables (all optional):

- ``SMS_SPAM_DATASET``: dataset path (default ``SMSSpamCollection``)
- ``SMS_SPAM_SEP``: field separator, ``tab`` or a literal character
- ``SMS_SPAM_HEADER``: whether the dataset has a header row
- ``SMS_SPAM_SEED``: random seed for the train/validation/test split
- ``SMS_SPAM_RATIOS``: three comma-separated split fractions
- ``SMS_SPAM_ALPHAS``: comma-separated smoothing constants to sweep
- ``SMS_SPAM_LOG_LEVEL``: logging level name
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .classifier import validate_alpha
from .dataset import DEFAULT_RATIOS

ENV_PREFIX = "SMS_SPAM_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class Settings:
    """Defaults for loading, splitting and tuning."""

    dataset: Path = Path("SMSSpamCollection")
    sep: str = "\t"
    header: bool = False
    seed: int = 1
    ratios: tuple[float, float, float] = DEFAULT_RATIOS
    alphas: tuple[float, ...] = (0.1, 0.5, 1.0)
    log_level: str = "WARNING"


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_floats(name: str, raw: str) -> tuple[float, ...]:
    try:
        return tuple(float(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be comma-separated numbers, got {raw!r}") from exc


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def parse_sep(raw: str) -> str:
    """Translate ``tab``/``\\t`` spellings into a tab character."""
    if raw.lower() in ("tab", "\\t"):
        return "\t"
    return raw


def load_settings(env_file: str | Path | None = None) -> Settings:
    """Build settings from the environment, after loading a ``.env`` file.

    Variables already set in the environment take precedence over the file.

    Args:
        env_file: Explicit ``.env`` path. When omitted, the nearest ``.env``
            from the working directory upward is used, if any.

    Raises:
        ValueError: If a variable is malformed.
    """
    dotenv_path = str(env_file) if env_file else find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path, override=False)

    settings = Settings()

    raw = _env("DATASET")
    if raw is not None:
        settings.dataset = Path(raw)
    raw = _env("SEP")
    if raw is not None:
        settings.sep = parse_sep(raw)
    raw = _env("HEADER")
    if raw is not None:
        settings.header = _parse_bool("HEADER", raw)
    raw = _env("SEED")
    if raw is not None:
        try:
            settings.seed = int(raw)
        except ValueError as exc:
            raise ValueError(f"{ENV_PREFIX}SEED must be an integer, got {raw!r}") from exc
    raw = _env("RATIOS")
    if raw is not None:
        ratios = _parse_floats("RATIOS", raw)
        if len(ratios) != 3:
            raise ValueError(f"{ENV_PREFIX}RATIOS needs exactly 3 values, got {raw!r}")
        settings.ratios = (ratios[0], ratios[1], ratios[2])
    raw = _env("ALPHAS")
    if raw is not None:
        alphas = _parse_floats("ALPHAS", raw)
        if not alphas:
            raise ValueError(f"{ENV_PREFIX}ALPHAS must list at least one value")
        settings.alphas = tuple(validate_alpha(a) for a in alphas)
    raw = _env("LOG_LEVEL")
    if raw is not None:
        level = raw.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"{ENV_PREFIX}LOG_LEVEL is not a logging level: {raw!r}")
        settings.log_level = level

    return settings
