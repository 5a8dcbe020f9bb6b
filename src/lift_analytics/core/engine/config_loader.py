"""
YAML -> typed config loader.

Loads analytics thresholds from analytics.yaml (bundled with the package)
and optionally merges user overrides from ~/.lift-analytics/analytics.yaml.

Usage:
    from lift_analytics.core.engine.config_loader import load_analytics_config
    cfg = load_analytics_config()
    cap = cfg.rest_cap_seconds

If the user override file exists but cannot be parsed, a warning is logged
and the file is ignored.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..config import AnalyticsConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; non-mapping documents load as {}."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_text() -> str:
    """Return the bundled analytics.yaml as text."""
    return importlib.resources.files("lift_analytics").joinpath("analytics.yaml").read_text(encoding="utf-8")


def get_user_yaml_path() -> Path | None:
    """Return the user override analytics.yaml if it exists, else None."""
    home = os.environ.get("LIFT_ANALYTICS_HOME")
    base = Path(home).expanduser() if home else Path.home() / ".lift-analytics"
    p = base / "analytics.yaml"
    return p if p.exists() else None


def _bundled_sections() -> dict[str, Any]:
    data = yaml.safe_load(get_bundled_yaml_text())
    return data if isinstance(data, dict) else {}


def load_config_sections(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge raw config sections from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/lift_analytics/analytics.yaml
    2. User override (explicit user_path, else ~/.lift-analytics/analytics.yaml)

    Returns:
        Merged dict of config sections
    """
    config = _bundled_sections()

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None and user.exists():
        try:
            config = _deep_merge(config, _load_yaml_file(user))
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable config override %s: %s", user, e)

    return config


def load_analytics_config(user_path: Path | None = None) -> AnalyticsConfig:
    """
    Build the effective AnalyticsConfig.

    An override whose values fail validation is logged and ignored, leaving
    the bundled values in force.
    """
    sections = load_config_sections(user_path)
    try:
        return AnalyticsConfig.from_sections(sections)
    except (TypeError, ValueError) as e:
        logger.warning("Invalid analytics config, using defaults: %s", e)
        return AnalyticsConfig.from_sections(_bundled_sections())
