from __future__ import annotations
"""
gridstats.core.config

Purpose
- Build the effective option set for one run by layering built-in defaults,
  an optional ``gridstats.yml`` and the command line.

Key Behaviors
- Shallow (top-level) merge with precedence: CLI > config file > defaults.
  ``None`` means "not given" and never overrides a lower layer.
- The config file may nest its keys under a ``gridstats`` block or keep them
  at top level; unknown keys are reported and dropped.
- Reading is best-effort for the discovered default file and strict for a
  file named explicitly on the command line.

Inputs
- CLI options as a dict, optional explicit config path, search directory for
  ``gridstats.yml`` / ``gridstats.yaml``.

Outputs
- Plain dict keyed by ``core.constants.CONFIG_KEYS``.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import ruamel.yaml
from loguru import logger

from gridstats.core.constants import (
    CONFIG_BLOCK,
    CONFIG_FILENAMES,
    CONFIG_KEYS,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LOG_LEVEL,
    LOG_LEVEL,
    OPT_CHUNK_SIZE,
)

_yaml = ruamel.yaml.YAML(typ="safe")


def default_options() -> Dict[str, Any]:
    opts: Dict[str, Any] = {k: None for k in CONFIG_KEYS}
    opts[OPT_CHUNK_SIZE] = DEFAULT_CHUNK_SIZE
    opts[LOG_LEVEL] = DEFAULT_LOG_LEVEL
    return opts


def find_config_yaml(directory: str | Path) -> Path | None:
    directory = Path(directory)
    for name in CONFIG_FILENAMES:
        p = directory / name
        if p.is_file():
            return p
    return None


def read_yaml_file(p: Path, *, strict: bool = False) -> dict:
    """Read a YAML mapping; on failure return {} unless ``strict``."""
    try:
        with Path(p).open("r", encoding="utf-8") as f:
            data = _yaml.load(f) or {}
    except Exception as exc:
        if strict:
            raise
        logger.warning("Ignoring unreadable config {}: {}", p, exc)
        return {}
    if not isinstance(data, dict):
        if strict:
            raise ValueError(f"Config {p} must contain a mapping")
        logger.warning("Ignoring config {}: top level is not a mapping", p)
        return {}
    return data


def extract_options(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Pick recognised option keys from a parsed config file."""
    block = cfg.get(CONFIG_BLOCK)
    source = block if isinstance(block, dict) else cfg
    opts: Dict[str, Any] = {}
    for k, v in source.items():
        key = str(k).replace("-", "_")
        if key in CONFIG_KEYS:
            opts[key] = v
        elif key != CONFIG_BLOCK:
            logger.warning("Unknown config key '{}' ignored", k)
    return opts


def merge_configs(
    defaults: Dict[str, Any],
    file_cfg: Dict[str, Any],
    cli_cfg: Dict[str, Any],
) -> Dict[str, Any]:
    """Shallow top-level merge with precedence: cli > file > defaults."""
    merged: Dict[str, Any] = {}
    keys = set()
    for d in (defaults or {}, file_cfg or {}, cli_cfg or {}):
        keys.update(d.keys())
    for k in keys:
        d, f, c = (defaults or {}).get(k), (file_cfg or {}).get(k), (cli_cfg or {}).get(k)
        merged[k] = c if c is not None else (f if f is not None else d)
    return merged


def load_options(
    cli_cfg: Dict[str, Any],
    *,
    config_path: Optional[Path | str] = None,
    search_dir: Optional[Path | str] = None,
) -> Dict[str, Any]:
    """Return the effective options for one run."""
    file_cfg: Dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        file_cfg = extract_options(read_yaml_file(path, strict=True))
    else:
        found = find_config_yaml(search_dir if search_dir is not None else Path.cwd())
        if found is not None:
            logger.debug("Using config {}", found)
            file_cfg = extract_options(read_yaml_file(found))
    return merge_configs(default_options(), file_cfg, cli_cfg)


__all__ = [
    "default_options",
    "find_config_yaml",
    "read_yaml_file",
    "extract_options",
    "merge_configs",
    "load_options",
]
