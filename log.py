"""
log.py – runtime logging.

Everything goes to `<install>/runtime.log`; the terminal only sees
warnings, so normal CLI output stays the plain confirmations printed by
main.py.  The preview server exposes the same file at /log.
"""
from __future__ import annotations

import logging

from config import ViewerConfig

FILE_FORMAT    = "%(asctime)s | %(name)s | %(levelname)-8s | %(message)s"
CONSOLE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
CONSOLE_LEVEL  = logging.WARNING

# handlers installed by setup_logging(), replaced on the next call
_installed: list[logging.Handler] = []


def setup_logging(cfg: ViewerConfig) -> logging.Logger:
    root = logging.getLogger()
    level = logging.getLevelName(cfg.log_level)
    root.setLevel(level if isinstance(level, int) else logging.INFO)

    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(CONSOLE_LEVEL)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)
    _installed.append(console)

    try:
        cfg.install_path.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(cfg.log_path, mode="a", encoding="utf-8")
    except OSError as exc:
        root.warning("Could not open log file %s: %s", cfg.log_path, exc)
    else:
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(fh)
        _installed.append(fh)

    return root
