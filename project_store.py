"""
project_store.py

On-disk project repository for the ASCII viewer.

Layout
------
    <install>/projects/<name>/frame_0001.txt …   one folder per project
    <install>/www/projects.json                  denormalised name index

The filesystem is the source of truth.  `projects.json` is a read cache
that is rewritten after every add/delete and never consulted by anything
that needs to be correct.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List

import config
from config import ViewerConfig
from errors import InvalidSource, NotFound, RemovalFailed, TransferFailed

log = logging.getLogger(__name__)


# ── Frame naming ────────────────────────────────────────────────────────────
def frame_name(index: int) -> str:
    """1-based index → `frame_0001.txt`."""
    return config.FRAME_NAME.format(index)


def is_frame_file(name: str) -> bool:
    return bool(config.FRAME_RE.match(name))


def count_frames(directory: Path) -> int:
    """
    Number of contiguous frames starting at 0001.  The first missing
    index ends the sequence, so stray files never count as frames.
    """
    n = 0
    while (directory / frame_name(n + 1)).is_file():
        n += 1
    return n


def valid_project_name(name: str) -> bool:
    if not name or name in (".", ".."):
        return False
    if name.startswith("."):
        return False
    return not any(sep in name for sep in ("/", "\\", "\0"))


# ── Data structures ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ProjectRef:
    name: str
    path: Path
    action: str          # "copy" | "move" | "none" (already installed)


# ── Store ───────────────────────────────────────────────────────────────────
class ProjectStore:
    """Owns `<install>/projects`; the only component that mutates it."""

    def __init__(self, cfg: ViewerConfig) -> None:
        self.cfg = cfg
        self.root = cfg.projects_path
        self.index_path = cfg.index_path

    # ------------------------------------------------------------- lookups
    def project_path(self, name: str) -> Path:
        return self.root / name

    def exists(self, name: str) -> bool:
        return valid_project_name(name) and self.project_path(name).is_dir()

    def list(self) -> List[str]:
        if not self.root.is_dir():
            return []
        names = [e.name for e in os.scandir(self.root) if e.is_dir()]
        return sorted(names)

    def frame_count(self, name: str) -> int:
        if not self.exists(name):
            raise NotFound(f"Project '{name}' not found.")
        return count_frames(self.project_path(name))

    def frame_path(self, name: str, index: int) -> Path:
        return self.project_path(name) / frame_name(index)

    # ------------------------------------------------------------- mutation
    def add(self, source: Path | str, action: str | None = None) -> ProjectRef:
        """
        Install the folder *source* as a project named after its basename.

        Re-adding a name replaces the old project; adding the installed
        folder itself is a no-op.  The index is rebuilt either way.
        """
        action = action or self.cfg.default_action
        src = Path(source)
        self._validate_source(src)

        resolved_src = src.resolve()
        name = resolved_src.name
        if not valid_project_name(name):
            raise InvalidSource(f"'{name}' is not a usable project name.")

        dest = self.project_path(name)
        if resolved_src == dest.resolve():
            log.info("'%s' is already the installed project, skipping transfer", name)
            self.rebuild_index()
            return ProjectRef(name, dest, "none")
        root = self.root.resolve()
        if resolved_src == root or resolved_src in root.parents:
            raise InvalidSource(f"'{src}' contains the project store; cannot {action} it into itself.")

        if dest.exists() or dest.is_symlink():
            log.info("overwriting existing project '%s'", name)
            self._remove(dest, name)

        self.root.mkdir(parents=True, exist_ok=True)
        try:
            if action == "move":
                shutil.move(str(resolved_src), str(dest))
            else:
                shutil.copytree(resolved_src, dest)
        except (OSError, shutil.Error) as exc:
            raise TransferFailed(f"Error {action}ing project '{name}': {exc}") from exc

        log.info("%s %s → %s", action, resolved_src, dest)
        self.rebuild_index()
        return ProjectRef(name, dest, action)

    def delete(self, name: str) -> None:
        if not self.exists(name):
            raise NotFound(f"Project '{name}' not found.")
        self._remove(self.project_path(name), name)
        log.info("deleted project '%s'", name)
        self.rebuild_index()

    def rebuild_index(self) -> None:
        """Rewrite `projects.json` from a live listing (best effort)."""
        try:
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.index_path, "w", encoding="utf-8") as f:
                json.dump({"projects": self.list()}, f, indent=2)
        except OSError as exc:
            log.debug("could not write %s: %s", self.index_path, exc)

    # ------------------------------------------------------------- internals
    @staticmethod
    def _validate_source(src: Path) -> None:
        if not src.is_dir():
            raise InvalidSource(f"'{src}' is not a directory.")
        try:
            has_frames = any(is_frame_file(e.name) for e in os.scandir(src) if e.is_file())
        except OSError as exc:
            raise InvalidSource(f"'{src}' is not accessible: {exc}") from exc
        if not has_frames:
            raise InvalidSource(f"No frame files (frame_NNNN.txt) found in '{src}'.")

    @staticmethod
    def _remove(path: Path, name: str) -> None:
        try:
            if path.is_symlink() or not path.is_dir():
                path.unlink()
            else:
                shutil.rmtree(path)
        except OSError as exc:
            raise RemovalFailed(f"Failed to remove project '{name}': {exc}") from exc
