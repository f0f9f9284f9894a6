#!/usr/bin/env python3
"""
events.py  – central hub for the native viewer

• Translates raw Pygame events to high-level action dicts.
• Exposes a thread-safe queue so other sources can inject the same
  actions.
"""

from __future__ import annotations
import queue
from pygame.locals import *

Action = dict      # alias for readability


class EventManager:
    _fifo: "queue.Queue[Action]" = queue.Queue()      # global, thread-safe

    # ── SDL / keyboard path ────────────────────────────────────────────
    @classmethod
    def handle(cls, event) -> None:
        """Translate one Pygame event → action and enqueue it."""
        act = cls.translate(event)
        if act:
            cls._fifo.put(act)

    # ── external / programmatic path ───────────────────────────────────
    @classmethod
    def post(cls, action: Action) -> None:
        """
        Any thread may call this to inject an already-formed action, e.g.
            EventManager.post({"type": "fps", "delta": +1})
        """
        cls._fifo.put(action)

    # ── main-loop consumer ─────────────────────────────────────────────
    @classmethod
    def poll(cls) -> Action | None:
        """Return next queued action or None (non-blocking)."""
        try:
            return cls._fifo.get_nowait()
        except queue.Empty:
            return None

    @classmethod
    def clear(cls) -> None:
        while cls.poll() is not None:
            pass

    # ── translator ────────────────────────────────────────────────────
    @staticmethod
    def translate(event) -> Action | None:
        if event.type == QUIT:
            return {"type": "quit"}
        if event.type == WINDOWFOCUSLOST:
            return {"type": "blur"}
        if event.type == WINDOWFOCUSGAINED:
            return {"type": "focus"}

        if event.type == KEYDOWN:
            if event.key in (K_ESCAPE, K_q):
                return {"type": "quit"}
            if event.key == K_UP:
                return {"type": "fps", "delta": +1}
            if event.key == K_DOWN:
                return {"type": "fps", "delta": -1}
            if event.key in (K_RIGHT, K_SPACE):
                return {"type": "switch_project", "to": "next"}
            if event.key == K_LEFT:
                return {"type": "switch_project", "to": "prev"}

        return None
