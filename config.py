# config.py
"""
Configuration settings for the ASCII animation viewer.

Module constants are the defaults.  `load_config()` reads the user's
`config.json` once at startup and returns an immutable `ViewerConfig`
that is handed to every component.
"""
from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path

from errors import ConfigError

# ── Install layout ──────────────────────────────────────────────────────────

# Root of everything the viewer owns; CASCII_VIEWER_HOME overrides it
INSTALL_PATH = Path.home() / ".cascii-viewer"
HOME_ENV     = "CASCII_VIEWER_HOME"

PROJECTS_DIR = "projects"
WWW_DIR      = "www"
INDEX_FILE   = "projects.json"
CONFIG_FILE  = "config.json"
LOG_FILE     = "runtime.log"

# ── Frames ──────────────────────────────────────────────────────────────────

FRAME_NAME = "frame_{:04d}.txt"
FRAME_RE   = re.compile(r"^frame_\d{4}\.txt$")

# ── Behaviour ───────────────────────────────────────────────────────────────

TRANSFER_ACTIONS = ("copy", "move")
DEFAULT_ACTION   = "copy"
DEFAULT_FPS      = 24
LOG_LEVEL        = "INFO"

# Preview server binds loopback only; port 0 lets the OS pick a free one
HOST = "127.0.0.1"

# ── Native viewer window ────────────────────────────────────────────────────

DISPLAY_HZ    = 60
WINDOWED_SIZE = (960, 720)
FONT_SIZE     = 14


@dataclass(frozen=True)
class ViewerConfig:
    install_path: Path = INSTALL_PATH
    default_action: str = DEFAULT_ACTION
    fps: float = DEFAULT_FPS
    reduced_motion: bool = False
    log_level: str = LOG_LEVEL

    @property
    def projects_path(self) -> Path:
        return self.install_path / PROJECTS_DIR

    @property
    def www_path(self) -> Path:
        return self.install_path / WWW_DIR

    @property
    def index_path(self) -> Path:
        return self.www_path / INDEX_FILE

    @property
    def config_path(self) -> Path:
        return self.install_path / CONFIG_FILE

    @property
    def log_path(self) -> Path:
        return self.install_path / LOG_FILE


def default_install_path() -> Path:
    env = os.environ.get(HOME_ENV)
    return Path(env).expanduser() if env else INSTALL_PATH


def load_config(install_path: Path | str | None = None) -> ViewerConfig:
    """Read `config.json` under the install path (defaults if it is absent)."""
    root = Path(install_path).expanduser() if install_path else default_install_path()
    path = root / CONFIG_FILE

    data: dict = {}
    if path.is_file():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Could not read {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a JSON object")

    action = data.get("defaultAction", DEFAULT_ACTION)
    if action not in TRANSFER_ACTIONS:
        raise ConfigError(
            f"defaultAction must be one of {', '.join(TRANSFER_ACTIONS)}, got {action!r}"
        )

    fps = data.get("fps", DEFAULT_FPS)
    if isinstance(fps, bool) or not isinstance(fps, (int, float)) or fps <= 0:
        raise ConfigError(f"fps must be a positive number, got {fps!r}")

    return ViewerConfig(
        install_path=root,
        default_action=action,
        fps=fps,
        reduced_motion=bool(data.get("reducedMotion", False)),
        log_level=str(data.get("logLevel", LOG_LEVEL)).upper(),
    )
