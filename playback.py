"""
playback.py – looping ASCII animation state machine.

    IDLE ──select()──▶ LOADING ──frames in──▶ READY (playing | paused)
      ▲                                          │
      └────────────── teardown() ◀── select() ───┘

Frames advance only inside the scheduled tick.  The host supplies a
scheduler with `request(callback) -> handle` and `cancel(handle)`; the
callback is later invoked with the current time in milliseconds.
"""
from __future__ import annotations

import enum
import functools
import logging
from typing import Any, Callable, List, Optional, Protocol

from errors import FrameLoadFailed
from frame_source import FrameSource, load_frames
from timing import FrameClock, advance

log = logging.getLogger(__name__)

LOADING_TEXT   = "Loading ASCII animation..."
NO_FRAMES_TEXT = "No frames loaded"


class Scheduler(Protocol):
    def request(self, callback: Callable[[float], None]) -> Any: ...
    def cancel(self, handle: Any) -> None: ...


class State(enum.Enum):
    IDLE    = "idle"
    LOADING = "loading"
    READY   = "ready"


class PlaybackController:
    def __init__(self, source: FrameSource, scheduler: Scheduler,
                 fps: float = 24, reduced_motion: bool = False,
                 on_change: Optional[Callable[["PlaybackController"], None]] = None):
        self.source         = source
        self.scheduler      = scheduler
        self.base_fps       = fps
        self.fps            = fps
        self.reduced_motion = reduced_motion
        self.on_change      = on_change

        self.state: State           = State.IDLE
        self.project: Optional[str] = None
        self.frames: List[str]      = []
        self.current                = 0
        self.focused                = True
        self.error: Optional[FrameLoadFailed] = None
        self._clock: Optional[FrameClock]     = None

    # ── queries ────────────────────────────────────────────────────────────
    @property
    def playing(self) -> bool:
        return self._clock is not None and self._clock.handle is not None

    def display(self) -> str:
        if self.state is State.LOADING:
            return LOADING_TEXT
        if self.error is not None:
            return str(self.error)
        if self.state is State.IDLE or not self.frames:
            return NO_FRAMES_TEXT
        return self.frames[self.current]

    # ── lifecycle ──────────────────────────────────────────────────────────
    def select(self, project: str, frame_count: Optional[int] = None) -> None:
        """Switch to *project*: tear down, load every frame, then play."""
        self.teardown()
        self.project = project
        self.state   = State.LOADING
        self._notify()

        self.fps = self.source.fps_for(project) or self.base_fps

        try:
            frames = load_frames(self.source, project, frame_count)
        except FrameLoadFailed as e:
            log.warning("%s", e)
            self.error = e
            frames = []

        if self.project != project:
            return      # superseded while loading

        self.frames  = frames
        self.current = 0
        self._clock  = FrameClock.for_fps(self.fps)
        self.state   = State.READY
        self._notify()
        if self.focused:
            self.start()

    def teardown(self) -> None:
        """Cancel the pending tick and drop the frame buffer."""
        self.pause()
        self._clock  = None
        self.frames  = []
        self.current = 0
        self.error   = None
        self.project = None
        self.state   = State.IDLE

    # ── transport ──────────────────────────────────────────────────────────
    def start(self) -> None:
        clock = self._clock
        if self.state is not State.READY or clock is None or not self.frames:
            return
        if self.reduced_motion or clock.handle is not None:
            return
        clock.handle = self.scheduler.request(functools.partial(self._tick, clock))

    def pause(self) -> None:
        clock = self._clock
        if clock is None or clock.handle is None:
            return
        self.scheduler.cancel(clock.handle)
        clock.handle = None
        clock.reset()

    def on_focus(self) -> None:
        self.focused = True
        self.start()

    def on_blur(self) -> None:
        self.focused = False
        self.pause()

    def set_fps(self, fps: float) -> None:
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps!r}")
        self.base_fps = self.fps = fps
        if self._clock is not None:
            self._clock.set_fps(fps)

    # ── scheduled tick ─────────────────────────────────────────────────────
    def _tick(self, clock: FrameClock, now: float) -> None:
        if clock is not self._clock or clock.handle is None:
            return      # stale callback from a torn-down or paused clock
        steps = advance(clock, now)
        if steps and self.frames:
            self.current = (self.current + steps) % len(self.frames)
            self._notify()
        clock.handle = self.scheduler.request(functools.partial(self._tick, clock))

    def _notify(self) -> None:
        if self.on_change:
            self.on_change(self)
