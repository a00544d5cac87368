"""Project-level configuration and sheet loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from gridcalc.sheet import SheetMemory


CONFIG_FILENAME = "gridcalc.yaml"

DEFAULT_CONFIG = {
    "n_rows": 100,
    "n_cols": 26,
    "display_precision": 10,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
}


def load_project_config(project_dir: Path) -> dict[str, Any]:
    """Load project configuration from ``gridcalc.yaml``, with defaults.

    Args:
        project_dir: Root of the gridcalc project.

    Returns:
        Merged configuration dict.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = Path(project_dir) / CONFIG_FILENAME
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(user_config, dict):
            raise ValueError(f"{config_path} must contain a mapping")
        config.update(user_config)
    return config


def load_sheet(path: Path, config: dict[str, Any] | None = None) -> SheetMemory:
    """Read a sheet YAML file into a ``SheetMemory``.

    Sheet dimensions missing from the file fall back to ``n_rows`` /
    ``n_cols`` from *config* (or the defaults).

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not a mapping.
    """
    config = config or DEFAULT_CONFIG
    spec = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(spec, dict):
        raise ValueError(f"{path} must contain a mapping")
    spec.setdefault("n_rows", config.get("n_rows", DEFAULT_CONFIG["n_rows"]))
    spec.setdefault("n_cols", config.get("n_cols", DEFAULT_CONFIG["n_cols"]))
    return SheetMemory.from_spec(spec)
