from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError

CONFIG_FILENAME = "config.yml"


def _as_list(value) -> list:
    """extra_head / extra_footer can be a string or a list."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(x) for x in value]
    return []


def _as_int(data: dict, key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"config: {key} must be a positive integer, got {value!r}")
    return value


def _as_float(data: dict, key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"config: {key} must be a positive number, got {value!r}")
    return float(value)


def load_config(source_dir: Path, config_path: Optional[Path] = None) -> dict:
    """
    Load config.yml and apply defaults.

    An explicitly requested config file must exist; the default
    <source_dir>/config.yml is optional. Relative paths in the config are
    resolved against the directory holding the config file.
    """
    source_dir = Path(source_dir).resolve()

    if config_path is not None:
        config_path = Path(config_path).resolve()
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = source_dir / CONFIG_FILENAME

    data = {}
    if config_path.exists():
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config file {config_path} is not valid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        project_root = config_path.parent
    else:
        project_root = source_dir

    shortcut = str(data.get("search_shortcut", "/"))
    if len(shortcut) != 1:
        raise ConfigError(f"config: search_shortcut must be a single key, got {shortcut!r}")

    cfg = {
        "site_title": str(data.get("site_title", "Tech Blog")),
        "site_tagline": str(data.get("site_tagline", "")),
        "site_url": str(data.get("site_url", "") or "").rstrip("/"),
        "base_url": str(data.get("base_url", "") or "").rstrip("/"),
        "config_path": config_path,
        "content_root": (project_root / data.get("content_root", "content")).resolve(),
        "output_dir": (project_root / data.get("output_dir", "_site")).resolve(),
        "static_dir": (project_root / data.get("static_dir", "static")).resolve(),
        "default_layout": str(data.get("default_layout", "post")),
        "permalink_pattern": str(data.get("permalink_pattern", "/:year/:month/:day/:slug/")),
        "excerpt_length": _as_int(data, "excerpt_length", 200),
        "include_drafts": bool(data.get("include_drafts", False)),
        "enable_search": bool(data.get("enable_search", True)),
        "search_index_path": str(data.get("search_index_path", "search.json")).lstrip("/"),
        "search_max_results": _as_int(data, "search_max_results", 10),
        "search_shortcut": shortcut,
        "enable_feed": bool(data.get("enable_feed", True)),
        "feed_items": _as_int(data, "feed_items", 20),
        "extra_head": _as_list(data.get("extra_head", [])),
        "extra_footer": _as_list(data.get("extra_footer", [])),
        "watch_interval": _as_float(data, "watch_interval", 1.0),
    }
    return cfg
