#!/usr/bin/env python3
"""
app.py – native viewer window

Plays one project in a Pygame window using the same PlaybackController
as the browser.  The display loop is the scheduler: callbacks requested
during a frame run on the next one, like requestAnimationFrame.  Input
is dispatched by events.py.
"""
from __future__ import annotations

import itertools
import logging
from typing import Callable, Dict, List, Optional

import pygame

import config
from config import ViewerConfig
from events import Action, EventManager
from frame_source import FrameSource
from playback import PlaybackController, State
from renderer import draw_status, render_frame, status_line

log = logging.getLogger(__name__)


# ── scheduler ──────────────────────────────────────────────────────────────
class DisplayScheduler:
    """Runs requested callbacks once per display frame."""

    def __init__(self) -> None:
        self._pending: Dict[int, Callable[[float], None]] = {}
        self._ids = itertools.count(1)

    def request(self, callback: Callable[[float], None]) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def run_due(self, now: float) -> None:
        due, self._pending = self._pending, {}
        for cb in due.values():
            cb(now)

    def __len__(self) -> int:
        return len(self._pending)


# ── action dispatch ────────────────────────────────────────────────────────
def neighbour(projects: List[str], current: Optional[str], direction: str) -> Optional[str]:
    if not projects:
        return None
    if current not in projects:
        return projects[0] if direction == "next" else projects[-1]
    step = 1 if direction == "next" else -1
    return projects[(projects.index(current) + step) % len(projects)]


def apply_action(ctl: PlaybackController, act: Action) -> bool:
    """Apply one action; returns False when the viewer should exit."""
    t = act["type"]
    if t == "quit":
        return False
    if t == "focus":
        ctl.on_focus()
    elif t == "blur":
        ctl.on_blur()
    elif t == "fps":
        ctl.set_fps(max(1, ctl.fps + act.get("delta", 0)))
    elif t == "switch_project":
        projects = ctl.source.list_projects()
        dest = neighbour(projects, ctl.project, act["to"])
        if dest and dest != ctl.project:
            ctl.select(dest)
    return True


# ── main application ───────────────────────────────────────────────────────
class ViewerApp:
    def __init__(self, cfg: ViewerConfig, source: FrameSource):
        pygame.init()
        self.screen = pygame.display.set_mode(config.WINDOWED_SIZE, pygame.RESIZABLE)
        pygame.display.set_caption("CASCII Viewer")
        self.clock     = pygame.time.Clock()
        self.font      = pygame.font.SysFont("monospace", config.FONT_SIZE)
        self.scheduler = DisplayScheduler()
        self.ctl       = PlaybackController(
            source, self.scheduler, fps=cfg.fps, reduced_motion=cfg.reduced_motion,
            on_change=self._on_change,
        )

    def _on_change(self, ctl: PlaybackController) -> None:
        title = f"CASCII Viewer – {ctl.project}" if ctl.project else "CASCII Viewer"
        pygame.display.set_caption(title)
        if ctl.state is State.LOADING:
            self._draw()
            pygame.display.flip()

    def _draw(self) -> None:
        ctl = self.ctl
        render_frame(self.screen, ctl.display(), self.font)
        draw_status(self.screen, self.font,
                    status_line(ctl.project, ctl.current, len(ctl.frames), ctl.fps, ctl.playing))

    def run(self, project: str) -> None:
        self.ctl.select(project)
        running = True
        while running:
            for e in pygame.event.get():
                EventManager.handle(e)

            while (act := EventManager.poll()):
                if not apply_action(self.ctl, act):
                    running = False
                    break

            self.scheduler.run_due(float(pygame.time.get_ticks()))
            self._draw()
            pygame.display.flip()
            self.clock.tick(config.DISPLAY_HZ)

        self.ctl.teardown()
        pygame.quit()
        log.info("viewer window closed")
