"""Configuration loading for nix-du (config.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .models import DEFAULT_CLASSIFIER, Classifier
from .sizes import parse_size

CONFIG_FILENAME = "config.yml"

DEFAULT_NIX_COMMAND = ("nix", "--extra-experimental-features", "nix-command")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be used."""


@dataclass
class StoreConfig:
    """How to reach the store."""

    store_dir: str = "/nix/store"
    nix_command: List[str] = field(default_factory=lambda: list(DEFAULT_NIX_COMMAND))
    nix_store_command: List[str] = field(default_factory=lambda: ["nix-store"])


@dataclass
class ClassificationConfig:
    """Extra markers recognised on top of the built-in ones."""

    memory_prefixes: List[str] = field(default_factory=list)
    memory_marker_prefixes: List[str] = field(default_factory=list)
    memory_literals: List[str] = field(default_factory=list)
    temporary_prefixes: List[str] = field(default_factory=list)

    def classifier(self) -> Classifier:
        return DEFAULT_CLASSIFIER.extended(
            memory_prefixes=_encode(self.memory_prefixes),
            memory_marker_prefixes=_encode(self.memory_marker_prefixes),
            memory_literals=_encode(self.memory_literals),
            temporary_prefixes=_encode(self.temporary_prefixes),
        )


@dataclass
class FilterConfig:
    """Default filtering thresholds, overridden by command line flags."""

    min_size: Optional[int] = None
    nodes: Optional[int] = None


@dataclass
class NixDuConfig:
    """Represents the settings defined in config.yml."""

    path: Optional[Path] = None
    store: StoreConfig = field(default_factory=StoreConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)
    log_file: Optional[Path] = None


def default_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "nix-du" / CONFIG_FILENAME


def load_config(config_path: Path | None = None) -> NixDuConfig:
    """Load configuration from disk; a missing file yields the defaults.

    ``config_path`` may name the file or the directory holding ``config.yml``.
    """
    config_file = (config_path or default_config_path()).expanduser()
    if config_file.is_dir():
        config_file = config_file / CONFIG_FILENAME
    config_file = config_file.resolve()

    if not config_file.exists():
        return NixDuConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    return NixDuConfig(
        path=config_file,
        store=_parse_store(_section(data, "store")),
        classification=_parse_classification(_section(data, "classification")),
        filter=_parse_filter(_section(data, "filter")),
        log_file=_parse_log_file(_section(data, "output"), config_file.parent),
    )


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping")
    return value


def _parse_store(section: Dict[str, Any]) -> StoreConfig:
    store = StoreConfig()
    store_dir = section.get("store_dir")
    if store_dir is not None:
        if not isinstance(store_dir, str) or not store_dir.startswith("/"):
            raise ConfigError("store.store_dir must be an absolute path")
        store.store_dir = store_dir
    for key in ("nix_command", "nix_store_command"):
        value = section.get(key)
        if value is None:
            continue
        # a command is either one shell-like string or a list of arguments
        command = value.split() if isinstance(value, str) else _strings(value, f"store.{key}")
        if not command:
            raise ConfigError(f"store.{key} must not be empty")
        setattr(store, key, command)
    return store


def _parse_classification(section: Dict[str, Any]) -> ClassificationConfig:
    classification = ClassificationConfig()
    for key in (
        "memory_prefixes",
        "memory_marker_prefixes",
        "memory_literals",
        "temporary_prefixes",
    ):
        value = section.get(key)
        if value is None:
            continue
        # a single marker may be written without brackets
        markers = [value] if isinstance(value, str) else _strings(value, f"classification.{key}")
        setattr(classification, key, markers)
    return classification


def _parse_filter(section: Dict[str, Any]) -> FilterConfig:
    filter_config = FilterConfig()
    min_size = section.get("min_size")
    if isinstance(min_size, bool):
        raise ConfigError(f"filter.min_size must be a size such as 50MB, got {min_size!r}")
    if isinstance(min_size, int):
        filter_config.min_size = min_size
    elif isinstance(min_size, str):
        try:
            filter_config.min_size = parse_size(min_size)
        except ValueError as exc:
            raise ConfigError(f"filter.min_size: {exc}") from exc
    elif min_size is not None:
        raise ConfigError(f"filter.min_size must be a size such as 50MB, got {min_size!r}")

    nodes = section.get("nodes")
    if nodes is not None:
        if isinstance(nodes, bool) or not isinstance(nodes, int) or nodes <= 0:
            raise ConfigError("filter.nodes must be a positive integer")
        filter_config.nodes = nodes
    return filter_config


def _parse_log_file(section: Dict[str, Any], base: Path) -> Optional[Path]:
    value = section.get("log_file")
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise ConfigError("output.log_file must be a path")
    log_file = Path(value).expanduser()
    return log_file if log_file.is_absolute() else base / log_file


def _strings(value: Any, key: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{key} must be a list of strings")
    return list(value)


def _encode(values: List[str]) -> List[bytes]:
    return [value.encode("utf-8") for value in values]


__all__ = [
    "ClassificationConfig",
    "ConfigError",
    "FilterConfig",
    "NixDuConfig",
    "StoreConfig",
    "default_config_path",
    "load_config",
]
