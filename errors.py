"""
errors.py – failure taxonomy shared by the store, server and playback.
"""
from __future__ import annotations


class ViewerError(Exception):
    """Base class for every failure the CLI reports to the user."""


class ConfigError(ViewerError):
    pass


class InvalidSource(ViewerError):
    """`add` was given something that is not a folder of frames."""


class NotFound(ViewerError):
    pass


class RemovalFailed(ViewerError):
    pass


class TransferFailed(ViewerError):
    pass


class PortUnavailable(ViewerError):
    pass


class FrameLoadFailed(ViewerError):
    """A frame could not be fetched; the whole load is abandoned."""

    def __init__(self, project: str, index: int, reason: str = ""):
        self.project = project
        self.index   = index
        msg = f"Could not load frame {index} of '{project}'"
        super().__init__(f"{msg}: {reason}" if reason else msg)
