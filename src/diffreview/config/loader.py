"""Load and merge configuration from .diffreview.toml and env vars."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from diffreview.config.schema import (
    OUTPUT_FORMATS,
    DiffReviewConfig,
    OutputConfig,
    ParserConfig,
    StagesConfig,
)

CONFIG_FILENAME = ".diffreview.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _merge_env_overrides(cfg: DiffReviewConfig) -> None:
    """Apply DIFFREVIEW_* environment variable overrides."""
    if val := os.environ.get("DIFFREVIEW_OUTPUT_FORMATS"):
        formats = [f for f in _split_list(val) if f in OUTPUT_FORMATS]
        if formats:
            cfg.output.formats = formats
    if val := os.environ.get("DIFFREVIEW_OUTPUT_DIR"):
        cfg.output.directory = val.strip()
    if val := os.environ.get("DIFFREVIEW_DISABLE_STAGES"):
        cfg.stages.disable.extend(_split_list(val))
    if val := os.environ.get("DIFFREVIEW_EXTENSIONS"):
        exts = [e if e.startswith(".") else f".{e}" for e in _split_list(val)]
        if exts:
            cfg.parser.extensions = exts


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    import dataclasses

    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> DiffReviewConfig:
    """Load, validate, and return a DiffReviewConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = DiffReviewConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = DiffReviewConfig(
            version=raw.get("version", "1.0"),
            parser=_build_section(raw, ParserConfig, "parser"),
            stages=_build_section(raw, StagesConfig, "stages"),
            output=_build_section(raw, OutputConfig, "output"),
        )

    unknown = [f for f in cfg.output.formats if f not in OUTPUT_FORMATS]
    if unknown:
        raise ConfigError(f"Unknown output format(s): {', '.join(unknown)}")

    _merge_env_overrides(cfg)
    return cfg
