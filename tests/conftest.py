import logging
import os

import pytest

import log
from config import ViewerConfig
from project_store import ProjectStore, frame_name


def write_frames(directory, indices, text="frame {}"):
    directory.mkdir(parents=True, exist_ok=True)
    for i in indices:
        (directory / frame_name(i)).write_text(text.format(i), encoding="utf-8")
    return directory


@pytest.fixture
def cfg(tmp_path):
    return ViewerConfig(install_path=tmp_path / "install")


@pytest.fixture
def store(cfg):
    return ProjectStore(cfg)


@pytest.fixture
def make_frames(tmp_path):
    """make_frames("name", range(1, 4)) → folder with frame_0001..0003."""
    def _make(name, indices, parent=None, text="frame {}"):
        return write_frames((parent or tmp_path / "src") / name, indices, text)
    return _make


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("CASCII_VIEWER_HOME", os.fspath(tmp_path / "install"))


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root = logging.getLogger()
    while log._installed:
        handler = log._installed.pop()
        root.removeHandler(handler)
        handler.close()
