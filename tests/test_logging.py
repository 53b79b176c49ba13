"""Tests for nixdu.logging."""

from __future__ import annotations

import io
from pathlib import Path

from nixdu.logging import configure_logging, get_logger


def test_progress_lines_are_bare_and_other_levels_are_prefixed() -> None:
    stream = io.StringIO()
    configure_logging(stream=stream)
    logger = get_logger("orchestrator")

    logger.info("Reading dependency graph from store...")
    logger.warning("Root points outside of the store")
    logger.debug("hidden without --verbose")

    assert stream.getvalue().splitlines() == [
        "Reading dependency graph from store...",
        "nix-du: warning: Root points outside of the store",
    ]


def test_verbose_shows_debug_details() -> None:
    stream = io.StringIO()
    configure_logging(verbose=True, stream=stream)

    get_logger("store").debug("Running nix-store --gc --print-roots")

    assert stream.getvalue() == "nix-du: debug: Running nix-store --gc --print-roots\n"


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    first = io.StringIO()
    second = io.StringIO()
    log_file = tmp_path / "logs" / "nix-du.log"
    configure_logging(stream=first)
    logger = configure_logging(stream=second, log_file=log_file)

    get_logger().info("42 nodes, 51 edges read.")
    for handler in logger.handlers:
        handler.flush()

    assert first.getvalue() == ""
    assert second.getvalue() == "42 nodes, 51 edges read.\n"
    assert "INFO nixdu: 42 nodes, 51 edges read." in log_file.read_text(encoding="utf-8")
    assert len(logger.handlers) == 2
