"""Project configuration helpers."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .constants import CFN_DIFF_DIR, CONFIG_FILE, CONSTRUCT_PATH_KEY, DEFAULT_FETCH_WORKERS
from .errors import ConfigError

logger = logging.getLogger(__name__)

FETCH_WORKERS_ENV = "CFN_DIFF_FETCH_MAX_WORKERS"


@dataclass
class DiffConfig:
    """Settings for diffing and refactor detection."""

    construct_path_key: str = CONSTRUCT_PATH_KEY
    resource_models_file: Optional[str] = None
    fetch_max_workers: int = DEFAULT_FETCH_WORKERS
    exclude: List[str] = field(default_factory=list)


def _positive_int(value, source: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{source} must be an integer, got {value!r}") from None
    if number < 1:
        raise ConfigError(f"{source} must be at least 1, got {number}")
    return number


def load_config(root: Path) -> DiffConfig:
    """Load configuration from .cfn-diff/config.yaml if present.

    An unreadable file logs a warning and yields the defaults. Values of the
    wrong shape raise ConfigError. ``CFN_DIFF_FETCH_MAX_WORKERS`` overrides
    the worker count.
    """
    cfg_path = Path(root) / CFN_DIFF_DIR / CONFIG_FILE
    data = {}
    if cfg_path.exists():
        try:
            data = yaml.safe_load(cfg_path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable config %s: %s", cfg_path, e)
            data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{cfg_path} must contain a mapping")

    exclude = data.get("exclude", [])
    if not isinstance(exclude, list) or not all(isinstance(e, str) for e in exclude):
        raise ConfigError("exclude must be a list of strings")

    config = DiffConfig(
        construct_path_key=str(data.get("construct_path_key", CONSTRUCT_PATH_KEY)),
        resource_models_file=data.get("resource_models_file"),
        fetch_max_workers=_positive_int(
            data.get("fetch_max_workers", DEFAULT_FETCH_WORKERS), "fetch_max_workers"
        ),
        exclude=exclude,
    )

    override = os.environ.get(FETCH_WORKERS_ENV)
    if override:
        config.fetch_max_workers = _positive_int(override, FETCH_WORKERS_ENV)

    # Relative catalogue paths are relative to the project root
    if config.resource_models_file and not Path(config.resource_models_file).is_absolute():
        config.resource_models_file = str(Path(root) / config.resource_models_file)
    return config
