"""Project-level configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


CONFIG_FILENAME = "tessera.yaml"

DEFAULT_CONFIG = {
    "logging_enabled": True,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
    "integer_results": True,
    "csv_delimiter": None,  # None: detect from the header line
}


def load_project_config(project_dir: Path) -> dict[str, Any]:
    """Load project configuration from ``tessera.yaml``, with defaults.

    Args:
        project_dir: Root of the tessera project.

    Returns:
        Merged configuration dict.

    Raises:
        ValueError: If the file does not hold a YAML mapping.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = Path(project_dir) / CONFIG_FILENAME
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(user_config, dict):
            raise ValueError(f"{config_path} must contain a mapping, got {type(user_config).__name__}")
        config.update(user_config)
    return config
