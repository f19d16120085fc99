"""
Builder configuration.

Loads YAML/JSON settings and returns typed config objects. The active config
supplies defaults for marker dialect, the unused-argument check and the size
of the shared template cache.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from . import dialects
from .errors import ConfigError
from .template import DEFAULT_CACHE_SIZE, default_cache


@dataclass(frozen=True)
class BuilderConfig:
    """Process-wide defaults for building queries."""

    dialect: str = dialects.DEFAULT_DIALECT
    check_unused: bool = True
    cache_max_size: Optional[int] = DEFAULT_CACHE_SIZE

    def __post_init__(self) -> None:
        try:
            dialects.get(self.dialect)
        except KeyError as e:
            raise ConfigError(
                f"Unknown dialect: {self.dialect}",
                details={"dialect": self.dialect, "available": sorted(dialects.available())},
                remediation="Pick one of the registered dialects.",
                cause=e,
            )
        if self.cache_max_size is not None and self.cache_max_size < 1:
            raise ConfigError(
                "cache_max_size must be >= 1 or null",
                details={"cache_max_size": self.cache_max_size},
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> BuilderConfig:
        check_unused = d.get("check_unused", True)
        if not isinstance(check_unused, bool):
            raise ConfigError(
                "check_unused must be true or false",
                details={"check_unused": check_unused, "type": type(check_unused).__name__},
            )
        return cls(
            dialect=str(d.get("dialect", dialects.DEFAULT_DIALECT)),
            check_unused=check_unused,
            cache_max_size=_cache_size(d.get("cache_max_size", DEFAULT_CACHE_SIZE)),
        )


def _cache_size(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(
            "cache_max_size must be an integer or null",
            details={"cache_max_size": value, "type": type(value).__name__},
        )
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(
            "cache_max_size must be an integer or null",
            details={"cache_max_size": value},
            cause=e,
        )


def load_builder_config(path: str) -> BuilderConfig:
    """
    Load builder settings from a YAML or JSON file.

    The file must contain a mapping. Settings may sit at the top level or under
    a 'sqlcompose' key.
    """
    p = Path(path)
    if not p.exists():
        raise ConfigError(
            f"Config not found: {path}",
            details={"path": path},
            remediation="Verify the path is correct and the file exists.",
        )
    text = p.read_text(encoding="utf-8")
    try:
        obj = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse config: {path}",
            details={"path": path, "error": repr(e)},
            remediation="Ensure the file is valid YAML or JSON encoded in UTF-8.",
            cause=e,
        )
    if obj is None:
        obj = {}
    if not isinstance(obj, dict):
        raise ConfigError(
            f"Config file must be a YAML/JSON object, got {type(obj).__name__}",
            details={"path": path, "type": type(obj).__name__},
        )
    section = obj.get("sqlcompose", obj)
    if not isinstance(section, dict):
        raise ConfigError(
            "'sqlcompose' section must be an object",
            details={"path": path, "type": type(section).__name__},
        )
    return BuilderConfig.from_dict(section)


_lock = threading.Lock()
_active = BuilderConfig()


def get_config() -> BuilderConfig:
    return _active


def set_config(config: BuilderConfig) -> BuilderConfig:
    """Install `config` as the active config and return the previous one."""
    global _active
    with _lock:
        previous = _active
        _active = config
        default_cache.resize(config.cache_max_size)
    return previous
