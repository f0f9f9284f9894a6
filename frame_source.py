"""
frame_source.py – where frames come from.

`FrameSource` is the one data capability the viewers depend on:

    list_projects()               → names
    resolve_frame_count(project)  → n   (0 = empty animation)
    load_frame(project, index)    → text, or FrameLoadFailed

Implementations
---------------
HttpFrameSource        live preview server (projects.json / frames-count)
StaticManifestSource   published manifest with known counts and fps
StoreFrameSource       the local project store, read directly

Pick one at startup with `make_source()`; nothing downstream branches on
which kind it got.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from errors import FrameLoadFailed, InvalidSource, NotFound
from project_store import ProjectStore, frame_name, valid_project_name

log = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10.0


def coerce_frame_count(value: Any) -> int:
    """Anything that isn't a positive whole number counts as zero frames."""
    if isinstance(value, bool):
        return 0
    try:
        n = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return n if n > 0 else 0


class FrameSource:
    def list_projects(self) -> List[str]:
        raise NotImplementedError

    def resolve_frame_count(self, project: str) -> int:
        raise NotImplementedError

    def load_frame(self, project: str, index: int) -> str:
        raise NotImplementedError

    def fps_for(self, project: str) -> Optional[float]:
        """Per-project tempo, if the source knows one."""
        return None


def load_frames(source: FrameSource, project: str,
                frame_count: Optional[int] = None) -> List[str]:
    """
    Fetch every frame of *project*, in order, before returning.

    *frame_count* short-circuits the count lookup when the caller
    already knows it.  Any failed frame aborts the whole load.
    """
    if frame_count is None:
        n = source.resolve_frame_count(project)
    else:
        n = coerce_frame_count(frame_count)
    frames = [source.load_frame(project, i) for i in range(1, n + 1)]
    log.debug("loaded %d frames for '%s'", len(frames), project)
    return frames


# ── live HTTP ───────────────────────────────────────────────────────────────
class HttpFrameSource(FrameSource):
    def __init__(self, base_url: str, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _url(self, *parts: str) -> str:
        return self.base_url + "/" + "/".join(quote(p, safe="") for p in parts)

    def list_projects(self) -> List[str]:
        try:
            response = self.session.get(self._url("projects.json"), timeout=REQUEST_TIMEOUT)
            if not response.ok:
                return []
            projects = response.json().get("projects") or []
        except (requests.RequestException, ValueError, AttributeError) as e:
            log.warning("could not fetch project list: %s", e)
            return []
        return [p for p in projects if isinstance(p, str)]

    def resolve_frame_count(self, project: str) -> int:
        try:
            response = self.session.get(
                self._url("api", "projects", project, "frames-count"),
                timeout=REQUEST_TIMEOUT,
            )
            if not response.ok:
                return 0
            return coerce_frame_count(response.json().get("frameCount"))
        except (requests.RequestException, ValueError, AttributeError) as e:
            log.warning("could not fetch frame count for '%s': %s", project, e)
            return 0

    def load_frame(self, project: str, index: int) -> str:
        url = self._url("projects", project, frame_name(index))
        try:
            response = self.session.get(url, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise FrameLoadFailed(project, index, str(e)) from e
        if not response.ok:
            raise FrameLoadFailed(project, index, f"HTTP {response.status_code}")
        response.encoding = response.encoding or "utf-8"
        return response.text


# ── static manifest ─────────────────────────────────────────────────────────
class StaticManifestSource(FrameSource):
    """
    Frame counts are published up front, e.g.

        {"projects": [{"name": "small", "frameCount": 120, "fps": 24}]}

    and frames are read from `<root>/<name>/`.
    """

    def __init__(self, entries: List[Dict[str, Any]], root: Path | str):
        self.root = Path(root)
        self.entries: Dict[str, Dict[str, Any]] = {}
        for entry in entries:
            name = entry.get("name")
            if isinstance(name, str) and name:
                self.entries[name] = entry

    @classmethod
    def from_file(cls, path: Path | str, root: Path | str | None = None) -> "StaticManifestSource":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise InvalidSource(f"Could not read manifest {path}: {e}") from e
        entries = data.get("projects", []) if isinstance(data, dict) else data
        return cls(entries, root if root is not None else path.parent)

    def list_projects(self) -> List[str]:
        return list(self.entries)

    def resolve_frame_count(self, project: str) -> int:
        entry = self.entries.get(project)
        return coerce_frame_count(entry.get("frameCount")) if entry else 0

    def fps_for(self, project: str) -> Optional[float]:
        entry = self.entries.get(project) or {}
        fps = entry.get("fps")
        if isinstance(fps, (int, float)) and not isinstance(fps, bool) and fps > 0:
            return fps
        return None

    def load_frame(self, project: str, index: int) -> str:
        if project not in self.entries or not valid_project_name(project):
            raise FrameLoadFailed(project, index, "not in manifest")
        try:
            return (self.root / project / frame_name(index)).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FrameLoadFailed(project, index, str(e)) from e


# ── local store ─────────────────────────────────────────────────────────────
class StoreFrameSource(FrameSource):
    def __init__(self, store: ProjectStore):
        self.store = store

    def list_projects(self) -> List[str]:
        try:
            return self.store.list()
        except OSError as e:
            log.warning("could not list projects: %s", e)
            return []

    def resolve_frame_count(self, project: str) -> int:
        try:
            return self.store.frame_count(project)
        except (NotFound, OSError):
            return 0

    def load_frame(self, project: str, index: int) -> str:
        if not self.store.exists(project):
            raise FrameLoadFailed(project, index, "project not found")
        try:
            return self.store.frame_path(project, index).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FrameLoadFailed(project, index, str(e)) from e


def make_source(store: Optional[ProjectStore] = None, *, url: Optional[str] = None,
                manifest: Path | str | None = None) -> FrameSource:
    """Choose the data source once, at startup."""
    if manifest is not None:
        return StaticManifestSource.from_file(manifest)
    if url is not None:
        return HttpFrameSource(url)
    if store is None:
        raise ValueError("make_source needs a store, a url or a manifest")
    return StoreFrameSource(store)
