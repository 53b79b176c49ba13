"""CLI entrypoint for nix-du."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError, load_config
from .depgraph import StoreReadError
from .logging import configure_logging
from .models import ClassificationError
from .orchestrator import Orchestrator, RunOptions
from .sizes import parse_size
from .store import StoreReader

_LONG_DESCRIPTION = """
Outputs a graph in the dot format which may help you figure out which gc-roots
should be removed in order to reclaim space in the nix store.

To get started, if you are interested in freeing, say, 500MB, run
`nix-du -s 500MB | tred | dot -Tsvg > /tmp/store.svg`
and view the result in a browser.

Without options, all store paths on which the same set of gc-roots depend are
coalesced into one node, which has the size of the sum and the label of an
arbitrary member. An arrow from A to B means that while A is alive, B is also
alive. As a rule of thumb, a node labeled `foo (30 KiB)` means that removing
enough roots to get rid of this node frees 30 KiB.

Filtering options hide small nodes without changing sizes: the size of a
hidden node is added to one of its ancestors, and roots without any kept
descendant are gathered in a `{filtered out}` node.
"""


def _size_arg(value: str) -> int:
    try:
        return parse_size(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            "not a valid size. Try -s 5MB for example."
        ) from None


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        parsed = 0
    if parsed <= 0:
        raise argparse.ArgumentTypeError("not a positive integer")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nix-du",
        description="Visualise which gc-roots to delete to free space in the nix store.",
        epilog=_LONG_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    threshold = parser.add_mutually_exclusive_group()
    threshold.add_argument(
        "-s",
        "--min-size",
        type=_size_arg,
        metavar="SIZE",
        help="Hide nodes below this size (a unit should be specified: -s 50MB).",
    )
    threshold.add_argument(
        "-n",
        "--nodes",
        type=_positive_int,
        metavar="N",
        help="Only keep the approximately N biggest nodes.",
    )
    parser.add_argument(
        "-r",
        "--root",
        metavar="PATH",
        help="Only consider the closure of this store path (or link to one).",
    )
    parser.add_argument(
        "--no-condense",
        dest="condense",
        action="store_false",
        help="Keep every reachable store path instead of merging equivalent ones.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        metavar="FILE",
        help="Write the graph to FILE instead of standard output.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="Configuration file (defaults to $XDG_CONFIG_HOME/nix-du/config.yml).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for nix-du."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"nix-du: {exc}\n")

    configure_logging(verbose=bool(args.verbose), log_file=config.log_file)

    min_size = config.filter.min_size or 0
    nodes = config.filter.nodes or 0
    if args.min_size is not None:
        min_size, nodes = args.min_size, 0
    elif args.nodes is not None:
        min_size, nodes = 0, args.nodes

    options = RunOptions(
        root=os.fsencode(args.root) if args.root else None,
        min_size=min_size,
        nodes=nodes,
        condense=bool(args.condense),
    )
    orchestrator = Orchestrator(
        reader=StoreReader.from_config(config.store),
        classifier=config.classification.classifier(),
    )

    try:
        graph = orchestrator.run(options)
    except StoreReadError as exc:
        parser.exit(exc.status, "Could not read from store\n")
    except ClassificationError as exc:
        parser.exit(1, f"nix-du: {exc}\n")

    try:
        if args.output is not None:
            with args.output.open("w", encoding="utf-8") as handle:
                orchestrator.render(graph, handle)
        else:
            orchestrator.render(graph, sys.stdout)
    except OSError as exc:
        parser.exit(1, f"Cannot write output: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
