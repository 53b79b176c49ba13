"""Reads the dependency graph of a Nix store through the ``nix`` command line."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_NIX_COMMAND, StoreConfig
from ..depgraph import GraphHandle
from ..logging import get_logger

EXIT_FAILURE = 1
EXIT_DATAERR = 65
EXIT_NOT_FOUND = 127

_ROOT_SEPARATOR = b" -> "


@dataclass(frozen=True)
class PathInfo:
    """Size and references of a valid store path."""

    path: bytes
    nar_size: int
    references: Tuple[bytes, ...]


class StoreFormatError(ValueError):
    """Raised when the output of a nix command cannot be understood."""


class StoreReader:
    """Populates a graph handle with the store paths, references and gc roots."""

    def __init__(
        self,
        runner: Callable[[Sequence[str]], str] | None = None,
        *,
        store_dir: str = "/nix/store",
        nix_command: Sequence[str] = DEFAULT_NIX_COMMAND,
        nix_store_command: Sequence[str] = ("nix-store",),
    ) -> None:
        self._runner = runner or self._default_runner
        self.store_dir = os.fsencode(store_dir.rstrip("/"))
        self.nix_command = list(nix_command)
        self.nix_store_command = list(nix_store_command)
        self.logger = get_logger("store")

    @classmethod
    def from_config(
        cls,
        config: StoreConfig,
        runner: Callable[[Sequence[str]], str] | None = None,
    ) -> "StoreReader":
        return cls(
            runner,
            store_dir=config.store_dir,
            nix_command=config.nix_command,
            nix_store_command=config.nix_store_command,
        )

    def populate(self, handle: GraphHandle, root: Optional[bytes] = None) -> int:
        """Register every node and edge into ``handle``; return a status code.

        With ``root``, only its closure is read and its node is registered
        first, at index 0.
        """
        try:
            if root is None:
                self._populate_all(handle)
            else:
                self._populate_closure(handle, root)
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            self.logger.error(
                "%s exited with status %d%s",
                " ".join(str(arg) for arg in exc.cmd),
                exc.returncode,
                f": {stderr}" if stderr else "",
            )
            return exc.returncode or EXIT_FAILURE
        except FileNotFoundError as exc:
            self.logger.error("Cannot run nix: %s", exc)
            return EXIT_NOT_FOUND
        except StoreFormatError as exc:
            self.logger.error("Unexpected output from nix: %s", exc)
            return EXIT_DATAERR
        return 0

    # ------------------------------------------------------------------
    # Internals

    def _populate_all(self, handle: GraphHandle) -> None:
        infos = self.path_infos(["--all"])
        ids = self._register_paths(handle, infos)
        roots = self.gc_roots()
        link_ids: Dict[bytes, int] = {}
        for link, target in roots:
            idx = link_ids.get(link)
            if idx is None:
                idx = handle.add_node(link, True, 0)
                link_ids[link] = idx
            target_idx = ids.get(self.to_store_path(target) or b"")
            if target_idx is None:
                self.logger.debug("Root %r points outside of the known store paths", link)
                continue
            handle.add_edge(idx, target_idx)
        self.logger.debug("Registered %d gc roots", len(link_ids))

    def _populate_closure(self, handle: GraphHandle, root: bytes) -> None:
        resolved = os.path.realpath(root)
        root_path = self.to_store_path(resolved)
        if root_path is None:
            raise StoreFormatError(f"{os.fsdecode(root)} is not in the store")
        infos = self.path_infos(["--recursive", os.fsdecode(root_path)])
        ordered = sorted(infos, key=lambda info: info.path != root_path)
        if not ordered or ordered[0].path != root_path:
            raise StoreFormatError(f"{os.fsdecode(root_path)} is missing from path-info output")
        self._register_paths(handle, ordered)

    def _register_paths(self, handle: GraphHandle, infos: Sequence[PathInfo]) -> Dict[bytes, int]:
        ids: Dict[bytes, int] = {}
        for info in infos:
            ids[info.path] = handle.add_node(info.path, False, info.nar_size)
        edges = 0
        for info in infos:
            source = ids[info.path]
            for reference in info.references:
                target = ids.get(reference)
                if target is None:
                    self.logger.debug("Skipping unknown reference %r", reference)
                    continue
                handle.add_edge(source, target)
                edges += 1
        self.logger.debug("Registered %d store paths and %d references", len(ids), edges)
        return ids

    def path_infos(self, args: Iterable[str]) -> List[PathInfo]:
        output = self._run([*self.nix_command, "path-info", "--json", *args])
        try:
            payload = json.loads(output)
        except json.JSONDecodeError as exc:
            raise StoreFormatError(f"invalid JSON from path-info: {exc}") from exc
        return self.parse_path_infos(payload)

    def parse_path_infos(self, payload: object) -> List[PathInfo]:
        """Accept both the list and the path-keyed mapping output shapes."""
        if isinstance(payload, list):
            entries = []
            for item in payload:
                if not isinstance(item, dict) or "path" not in item:
                    raise StoreFormatError("path-info list entries must carry a path")
                entries.append((item["path"], item))
        elif isinstance(payload, dict):
            entries = list(payload.items())
        else:
            raise StoreFormatError("path-info output must be a list or a mapping")

        infos: List[PathInfo] = []
        for path, item in entries:
            if item is None or (isinstance(item, dict) and not item.get("valid", True)):
                # invalid paths are reported without metadata
                continue
            if not isinstance(path, str) or not isinstance(item, dict):
                raise StoreFormatError(f"malformed path-info entry for {path!r}")
            nar_size = item.get("narSize", 0)
            references = item.get("references", [])
            if not isinstance(nar_size, int) or not isinstance(references, list):
                raise StoreFormatError(f"malformed path-info entry for {path!r}")
            infos.append(
                PathInfo(
                    path=self._absolute(path),
                    nar_size=nar_size,
                    references=tuple(self._absolute(ref) for ref in references),
                )
            )
        return infos

    def gc_roots(self) -> List[Tuple[bytes, bytes]]:
        output = self._run([*self.nix_store_command, "--gc", "--print-roots"])
        return self.parse_roots(output)

    def parse_roots(self, output: str) -> List[Tuple[bytes, bytes]]:
        roots: List[Tuple[bytes, bytes]] = []
        for line in os.fsencode(output).splitlines():
            stripped = line.strip()
            if not stripped:
                continue
            link, separator, target = stripped.rpartition(_ROOT_SEPARATOR)
            if not separator or not link or not target:
                self.logger.debug("Ignoring unexpected gc root line %r", stripped)
                continue
            roots.append((link, target))
        return roots

    def to_store_path(self, path: bytes) -> Optional[bytes]:
        """Return the top-level store path containing ``path``, if any."""
        prefix = self.store_dir + b"/"
        if not path.startswith(prefix):
            return None
        name = path[len(prefix) :].split(b"/", 1)[0]
        if not name:
            return None
        return prefix + name

    def _absolute(self, path: str) -> bytes:
        raw = os.fsencode(path)
        if raw.startswith(b"/"):
            return raw
        return self.store_dir + b"/" + raw

    def _run(self, args: Sequence[str]) -> str:
        self.logger.debug("Running %s", " ".join(args))
        return self._runner(args)

    @staticmethod
    def _default_runner(args: Sequence[str]) -> str:
        completed = subprocess.run(
            list(args),
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


__all__ = ["PathInfo", "StoreFormatError", "StoreReader"]
