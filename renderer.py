"""
renderer.py – draws ASCII frames and the status badge with Pygame.
"""
from __future__ import annotations

import pygame

# ── colours ────────────────────────────────────────────────────────────────
WHITE = (255, 255, 255)
GREEN = (0, 255, 0)
BG    = (0, 0, 0, 180)


def text_lines(text: str) -> list[str]:
    """Split a frame into display lines (tabs expanded, trailing newline dropped)."""
    lines = text.expandtabs(4).splitlines()
    return lines or [""]


def render_frame(screen: pygame.Surface, text: str, font: pygame.font.Font) -> None:
    """
    Render *text* line by line, then scale the block to fit `screen`
    keeping its aspect, centred on black.
    """
    lines  = text_lines(text)
    line_h = font.get_linesize()
    width  = max(1, max(font.size(ln)[0] for ln in lines))
    block  = pygame.Surface((width, max(1, line_h * len(lines))))
    block.fill((0, 0, 0))
    for i, ln in enumerate(lines):
        if ln:
            block.blit(font.render(ln, True, WHITE), (0, i * line_h))

    sw, sh = screen.get_size()
    bw, bh = block.get_size()
    scale  = min(sw / bw, sh / bh)
    if scale < 1.0:
        block = pygame.transform.smoothscale(block, (int(bw * scale), int(bh * scale)))

    screen.fill((0, 0, 0))
    x = (sw - block.get_width()) // 2
    y = (sh - block.get_height()) // 2
    screen.blit(block, (x, y))


def status_line(project: str | None, current: int, total: int,
                fps: float, playing: bool) -> str:
    state = ">" if playing else "||"
    name  = project or "-"
    if total:
        return f"{state} {name}  {current + 1:04d}/{total:04d}  {fps:g} fps"
    return f"{state} {name}  {fps:g} fps"


def draw_status(surface: pygame.Surface, font: pygame.font.Font, text: str) -> None:
    """Top-left badge on a translucent background."""
    surf = font.render(text, True, GREEN)
    pad  = font.get_linesize() // 3
    bg   = pygame.Surface((surf.get_width() + 2 * pad, surf.get_height() + pad),
                          pygame.SRCALPHA)
    bg.fill(BG)
    bg.blit(surf, (pad, pad // 2))
    surface.blit(bg, (10, 10))
