"""Canned nix command line outputs for reader, orchestrator and CLI tests."""

from __future__ import annotations

import json
from typing import Dict, List, Sequence

SAMPLE_PATH_INFOS = [
    {"path": "/nix/store/aaaa-app", "narSize": 100, "references": ["/nix/store/bbbb-lib"]},
    {"path": "/nix/store/bbbb-lib", "narSize": 50, "references": []},
    {"path": "/nix/store/dddd-scratch", "narSize": 30, "references": []},
    {"path": "/nix/store/cccc-junk", "narSize": 7, "references": []},
]

SAMPLE_ROOTS = "\n".join(
    [
        "/home/alice/result -> /nix/store/aaaa-app",
        "/proc/1/maps -> /nix/store/bbbb-lib",
        "/proc/1/maps -> /nix/store/dddd-scratch",
        "",
    ]
)


class FakeNix:
    """Answers nix invocations from canned outputs and records them.

    ``outputs`` maps an argument that identifies the invocation to its
    standard output.
    """

    def __init__(self, outputs: Dict[str, str]) -> None:
        self.outputs = outputs
        self.calls: List[List[str]] = []

    def __call__(self, args: Sequence[str]) -> str:
        self.calls.append(list(args))
        for marker, output in self.outputs.items():
            if marker in args:
                return output
        raise AssertionError(f"unexpected command {args}")


def sample_store() -> FakeNix:
    """Return a fake nix for a store with two roots sharing a library."""
    return FakeNix({"--all": json.dumps(SAMPLE_PATH_INFOS), "--print-roots": SAMPLE_ROOTS})


__all__ = ["FakeNix", "SAMPLE_PATH_INFOS", "SAMPLE_ROOTS", "sample_store"]
