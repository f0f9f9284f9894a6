#!/usr/bin/env python3
"""
preview_server.py  –  local HTTP server for the browser viewer

Endpoints
---------
/projects.json                        → {"projects": [...]} listed live from disk
/api/projects/<name>/frames-count     → {"frameCount": n}   (404 + 0 if absent)
/projects/<name>/<file>               → files from inside that project only
/diag                                 → JSON process diagnostics
/log                                  → contents of runtime.log (if present)
anything else                         → static asset from www/, else the app page

The server only ever reads the store.  It binds loopback on a port the OS
picks, so several viewers can run side by side.
"""

from __future__ import annotations

import http.server
import json
import logging
import mimetypes
import re
import socketserver
import threading
import time
import urllib.parse
from pathlib import Path
from typing import Any, List, Optional

import psutil

import config
import webapp
from config import ViewerConfig
from errors import NotFound, PortUnavailable
from project_store import ProjectStore, valid_project_name

log = logging.getLogger(__name__)

_FRAMES_COUNT_RE = re.compile(r"^/api/projects/([^/]+)/frames-count/?$")
_TEXT_TYPES      = ("text/", "application/json", "application/javascript")


class Forbidden(Exception):
    """Request path tried to leave its root."""


# ── helpers ────────────────────────────────────────────────────────────────
def _fmt_duration(secs: float) -> str:
    d, rem = divmod(int(secs), 86400)
    h, rem = divmod(rem, 3600)
    m, s   = divmod(rem, 60)
    return f"{d}d {h:02}:{m:02}:{s:02}"


def split_path(url_path: str) -> List[str]:
    """Percent-decode and split a URL path; `..` anywhere is refused."""
    parts = [p for p in urllib.parse.unquote(url_path).split("/") if p not in ("", ".")]
    for p in parts:
        if p == ".." or "\\" in p or "\0" in p:
            raise Forbidden(url_path)
    return parts


def resolve_inside(root: Path, parts: List[str]) -> Path:
    """Join *parts* onto *root*, following symlinks, without escaping it."""
    base   = root.resolve()
    target = base.joinpath(*parts).resolve()
    if target != base and base not in target.parents:
        raise Forbidden("/".join(parts))
    return target


def content_type(path: Path) -> str:
    ctype, _ = mimetypes.guess_type(path.name)
    ctype = ctype or "application/octet-stream"
    if ctype.startswith(_TEXT_TYPES):
        ctype += "; charset=utf-8"
    return ctype


# ── reusable HTTP server ───────────────────────────────────────────────────
class PreviewHTTPServer(socketserver.ThreadingMixIn, http.server.HTTPServer):
    """One thread per connection, so an idle client cannot stall the rest."""
    daemon_threads      = True
    allow_reuse_address = True
    preview: "PreviewServer"


# ── request handler ────────────────────────────────────────────────────────
class PreviewHandler(http.server.BaseHTTPRequestHandler):
    server: PreviewHTTPServer

    def log_message(self, fmt, *args):
        log.debug("%s - %s", self.address_string(), fmt % args)

    def do_GET(self):
        preview = self.server.preview
        preview.count_request()
        path = urllib.parse.urlparse(self.path).path

        if path == "/projects.json":
            return self._serve_json({"projects": preview.live_projects()})
        m = _FRAMES_COUNT_RE.match(path)
        if m:
            return self._serve_frames_count(urllib.parse.unquote(m.group(1)))
        if path == "/projects" or path.startswith("/projects/"):
            return self._serve_project_file(path[len("/projects"):])
        if path == "/diag":
            return self._serve_json(preview.diagnostics())
        if path == "/log":
            return self._serve_log()

        return self._serve_static(path)

    # ── helpers for each route ───────────────────────────────────────────
    def _serve_json(self, obj: Any, status: int = 200):
        b = json.dumps(obj).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(b)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(b)

    def _serve_bytes(self, data: bytes, ctype: str):
        self.send_response(200)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _serve_file(self, path: Path):
        try:
            data = path.read_bytes()
        except OSError:
            return self.send_error(404, "Not found")
        self._serve_bytes(data, content_type(path))

    def _serve_frames_count(self, name: str):
        store = self.server.preview.store
        try:
            count = store.frame_count(name)
        except NotFound:
            return self._serve_json({"frameCount": 0}, 404)
        except OSError as e:
            log.warning("frame count for '%s' failed: %s", name, e)
            return self._serve_json({"frameCount": 0}, 500)
        self._serve_json({"frameCount": count})

    def _serve_project_file(self, rel: str):
        store = self.server.preview.store
        try:
            parts = split_path(rel)
            if len(parts) < 2 or not valid_project_name(parts[0]):
                return self.send_error(404, "Not found")
            if not store.exists(parts[0]):
                return self.send_error(404, "Project not found")
            target = resolve_inside(store.project_path(parts[0]), parts[1:])
        except Forbidden:
            log.warning("refused path outside project root: %s", self.path)
            return self.send_error(403, "Forbidden")

        if not target.is_file():
            return self.send_error(404, "Not found")
        self._serve_file(target)

    def _serve_static(self, url_path: str):
        www = self.server.preview.cfg.www_path
        try:
            parts = split_path(url_path)
            target = resolve_inside(www, parts) if parts else None
        except Forbidden:
            log.warning("refused path outside www root: %s", self.path)
            return self.send_error(403, "Forbidden")

        if target is not None and target.is_file():
            return self._serve_file(target)
        self._serve_app()

    def _serve_app(self):
        entry = self.server.preview.cfg.www_path / "index.html"
        if entry.is_file():
            return self._serve_file(entry)
        self._serve_bytes(webapp.INDEX_HTML.encode("utf-8"), "text/html; charset=utf-8")

    def _serve_log(self):
        try:
            data = self.server.preview.cfg.log_path.read_bytes()
        except OSError:
            return self.send_error(404, "Log file not found")
        self._serve_bytes(data, "text/plain; charset=utf-8")


# ── server object ──────────────────────────────────────────────────────────
class PreviewServer:
    def __init__(self, cfg: ViewerConfig, store: ProjectStore, host: str = config.HOST):
        self.cfg   = cfg
        self.store = store
        self.host  = host
        self.httpd: Optional[PreviewHTTPServer] = None
        self.requests_served = 0
        self._count_lock = threading.Lock()
        self._started = time.monotonic()
        self._thread: Optional[threading.Thread] = None

    def count_request(self) -> None:
        with self._count_lock:
            self.requests_served += 1

    # ── binding ──────────────────────────────────────────────────────────
    def bind(self) -> int:
        """Take whatever free port the OS hands out; failure is fatal."""
        try:
            httpd = PreviewHTTPServer((self.host, 0), PreviewHandler)
        except OSError as e:
            raise PortUnavailable(f"Could not find an open port: {e}") from e
        httpd.preview = self
        self.httpd = httpd
        log.info("preview server bound to %s", self.url)
        return self.port

    @property
    def port(self) -> int:
        if self.httpd is None:
            raise RuntimeError("server is not bound")
        return self.httpd.server_address[1]

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    def project_url(self, name: str) -> str:
        return f"{self.url}/?project={urllib.parse.quote(name, safe='')}"

    # ── running ──────────────────────────────────────────────────────────
    def serve_forever(self) -> None:
        if self.httpd is None:
            self.bind()
        self.httpd.serve_forever()

    def start_background(self) -> None:
        if self.httpd is None:
            self.bind()
        self._thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self._thread.start()

    def shutdown(self) -> None:
        if self.httpd is None:
            return
        if self._thread is not None:
            self.httpd.shutdown()
            self._thread.join(timeout=2.0)
            self._thread = None
        self.httpd.server_close()
        self.httpd = None

    # ── data ─────────────────────────────────────────────────────────────
    def live_projects(self) -> List[str]:
        try:
            return self.store.list()
        except OSError as e:
            log.warning("could not list projects: %s", e)
            return []

    def diagnostics(self) -> dict:
        proc = psutil.Process()
        with proc.oneshot():
            rss = proc.memory_info().rss
            cpu = proc.cpu_percent(interval=None)
        return {
            "cpu_percent":     round(cpu, 1),
            "mem_rss":         f"{rss // 1024**2} MB",
            "uptime":          _fmt_duration(time.monotonic() - self._started),
            "requests_served": self.requests_served,
            "projects":        len(self.live_projects()),
            "port":            self.port,
        }
