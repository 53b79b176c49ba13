"""Tests for nixdu.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from nixdu.config import (
    ConfigError,
    NixDuConfig,
    default_config_path,
    load_config,
)
from nixdu.models import NodeKind


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, NixDuConfig)
    assert config.path is None
    assert config.store.store_dir == "/nix/store"
    assert config.store.nix_command == ["nix", "--extra-experimental-features", "nix-command"]
    assert config.store.nix_store_command == ["nix-store"]
    assert config.filter.min_size is None
    assert config.filter.nodes is None
    assert config.log_file is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yml"
    config_file.write_text(
        """
store:
  store_dir: "/gnu/store"
  nix_command: "nix --extra-experimental-features nix-command"
  nix_store_command: [sudo, nix-store]
classification:
  memory_literals: ["{hidden}"]
  temporary_prefixes:
    - "{tmp:"
filter:
  min_size: 50MB
output:
  log_file: "logs/nix-du.log"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.path == config_file.resolve()
    assert config.store.store_dir == "/gnu/store"
    assert config.store.nix_command == ["nix", "--extra-experimental-features", "nix-command"]
    assert config.store.nix_store_command == ["sudo", "nix-store"]
    assert config.filter.min_size == 50_000_000
    assert config.filter.nodes is None
    assert config.log_file == config_file.resolve().parent / "logs" / "nix-du.log"

    classifier = config.classification.classifier()
    assert classifier.classify(b"{hidden}", True).kind is NodeKind.MEMORY
    assert classifier.classify(b"{tmp:9}", True).kind is NodeKind.TEMPORARY
    assert classifier.classify(b"{lsof}", True).kind is NodeKind.MEMORY


def test_load_config_accepts_directory(tmp_path: Path) -> None:
    (tmp_path / "config.yml").write_text("filter:\n  nodes: 60\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.filter.nodes == 60
    assert config.filter.min_size is None


def test_single_marker_may_be_a_plain_string(tmp_path: Path) -> None:
    (tmp_path / "config.yml").write_text(
        "classification:\n  temporary_prefixes: '{scratch:'\n", encoding="utf-8"
    )

    config = load_config(tmp_path)

    assert config.classification.temporary_prefixes == ["{scratch:"]
    assert config.classification.memory_literals == []


def test_load_config_accepts_empty_file(tmp_path: Path) -> None:
    (tmp_path / "config.yml").write_text("\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.path == (tmp_path / "config.yml").resolve()
    assert config.filter.min_size is None


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "filter:\n  nodes: 0\n",
        "filter:\n  min_size: lots\n",
        "filter:\n  min_size: [1, 2]\n",
        "store: [unterminated\n",
        "filter: 3\n",
        "filter:\n  nodes: true\n",
        "store:\n  nix_command: []\n",
        "store:\n  store_dir: relative/store\n",
        "classification:\n  memory_literals: [1, 2]\n",
        "output:\n  log_file: 5\n",
    ],
)
def test_load_config_rejects_invalid_content(tmp_path: Path, content: str) -> None:
    config_file = tmp_path / "config.yml"
    config_file.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_default_config_path_honours_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert default_config_path() == tmp_path / "nix-du" / "config.yml"
