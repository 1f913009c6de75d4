"""Config loading — JSON files from the configs/ directory."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

_DEFAULT_CONFIGS_DIR = Path(__file__).resolve().parents[2] / "configs"


def configs_dir() -> Path:
    """Return the configs directory, honouring ``FIGBASS_CONFIGS_DIR``."""
    override = os.environ.get("FIGBASS_CONFIGS_DIR")
    if override:
        return Path(override)
    return _DEFAULT_CONFIGS_DIR


def load_config(config_name: str) -> dict:
    """Load a JSON config file from the configs/ directory."""
    return load_json(configs_dir() / config_name)


def load_json(path: str | Path) -> dict:
    """Load a JSON config file from an explicit path.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    logger.debug("Loading config %s", path)
    with open(path, encoding="utf-8") as f:
        return json.load(f)
