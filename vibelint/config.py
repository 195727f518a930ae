"""Configuration loading for vibelint (.vibelint.yml and caller overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

CONFIG_FILENAME = ".vibelint.yml"
TOOL_DIR = ".vibelint"


class ConfigError(RuntimeError):
    """Raised when configuration or overrides cannot be applied."""


@dataclass(frozen=True)
class SizeThresholds:
    """Line limits shared by the file-size and function-size checks."""

    file_warn_lines: int = 300
    file_fail_lines: int = 500
    func_warn_lines: int = 50
    func_fail_lines: int = 100


@dataclass(frozen=True)
class ErrorPatternThresholds:
    warn_issues: int = 1
    fail_issues: int = 5


@dataclass(frozen=True)
class ComplexityThresholds:
    warn: int = 10
    fail: int = 20


@dataclass(frozen=True)
class DuplicationThresholds:
    """Clone-count limits plus the minimum clone size passed to the detector."""

    min_lines: int = 10
    warn_clones: int = 3
    fail_clones: int = 10


@dataclass(frozen=True)
class DependencyThresholds:
    warn_new: int = 3


@dataclass(frozen=True)
class CouplingThresholds:
    base_branch: str = "main"
    warn_files: int = 20
    fail_files: int = 40
    warn_dirs: int = 8
    fail_dirs: int = 15


@dataclass(frozen=True)
class AnalysisSettings:
    """Effective settings for one analysis run."""

    size: SizeThresholds = field(default_factory=SizeThresholds)
    error_patterns: ErrorPatternThresholds = field(default_factory=ErrorPatternThresholds)
    complexity: ComplexityThresholds = field(default_factory=ComplexityThresholds)
    duplication: DuplicationThresholds = field(default_factory=DuplicationThresholds)
    dependencies: DependencyThresholds = field(default_factory=DependencyThresholds)
    coupling: CouplingThresholds = field(default_factory=CouplingThresholds)
    max_files: int = 10_000
    tool_timeout: float = 30.0


_THRESHOLD_SECTIONS = (
    "size",
    "error_patterns",
    "complexity",
    "duplication",
    "dependencies",
    "coupling",
)

Overrides = Mapping[str, Mapping[str, Any]]


def load_settings(repo_path: Path, overrides: Optional[Overrides] = None) -> AnalysisSettings:
    """Return defaults, overridden by the repo's .vibelint.yml, then by ``overrides``."""
    settings = AnalysisSettings()
    data = _read_config(repo_path / CONFIG_FILENAME)

    threshold_data = _as_dict(data.get("thresholds"))
    settings = apply_overrides(settings, threshold_data, source=CONFIG_FILENAME)

    collector_data = _as_dict(data.get("collector"))
    max_files = _as_int(collector_data.get("max_files"))
    if max_files is not None:
        settings = replace(settings, max_files=max_files)

    tools_data = _as_dict(data.get("tools"))
    timeout = _as_float(tools_data.get("timeout"))
    if timeout is not None:
        settings = replace(settings, tool_timeout=timeout)

    if overrides:
        settings = apply_overrides(settings, overrides, source="overrides")
    return settings


def apply_overrides(
    settings: AnalysisSettings, overrides: Mapping[str, Any], *, source: str = "overrides"
) -> AnalysisSettings:
    """Merge ``{section: {key: value}}`` partial thresholds into ``settings``."""
    for section, values in overrides.items():
        if section not in _THRESHOLD_SECTIONS:
            raise ConfigError(f"Unknown threshold section '{section}' in {source}")
        if values is None:
            continue
        if not isinstance(values, Mapping):
            raise ConfigError(f"Threshold section '{section}' in {source} must be a mapping")
        current = getattr(settings, section)
        merged = merge_thresholds(current, values, section=section, source=source)
        settings = replace(settings, **{section: merged})
    return settings


def merge_thresholds(defaults: Any, values: Mapping[str, Any], *, section: str, source: str) -> Any:
    """Return ``defaults`` with the known keys in ``values`` replaced."""
    known = {item.name: item for item in fields(defaults)}
    changes: Dict[str, Any] = {}
    for key, raw in values.items():
        if key not in known:
            raise ConfigError(f"Unknown threshold '{section}.{key}' in {source}")
        default_value = getattr(defaults, key)
        coerced = _coerce_like(default_value, raw)
        if coerced is None:
            raise ConfigError(
                f"Invalid value for '{section}.{key}' in {source}: {raw!r}"
            )
        changes[key] = coerced
    return replace(defaults, **changes)


def vibelint_home() -> Path:
    """Directory holding the repo registry and analysis history."""
    override = os.environ.get("VIBELINT_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / TOOL_DIR


def _read_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _coerce_like(default_value: Any, raw: Any) -> Any:
    if isinstance(default_value, bool):
        return raw if isinstance(raw, bool) else None
    if isinstance(default_value, int):
        return _as_int(raw)
    if isinstance(default_value, float):
        return _as_float(raw)
    if isinstance(default_value, str):
        return _as_str(raw)
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


__all__ = [
    "AnalysisSettings",
    "CONFIG_FILENAME",
    "ComplexityThresholds",
    "ConfigError",
    "CouplingThresholds",
    "DependencyThresholds",
    "DuplicationThresholds",
    "ErrorPatternThresholds",
    "Overrides",
    "SizeThresholds",
    "TOOL_DIR",
    "apply_overrides",
    "load_settings",
    "merge_thresholds",
    "vibelint_home",
]
