import json

import pytest

import config
from config import ViewerConfig, load_config
from errors import ConfigError


def write_config(root, data):
    root.mkdir(parents=True, exist_ok=True)
    (root / "config.json").write_text(json.dumps(data) if not isinstance(data, str) else data)


def test_defaults_when_file_missing(tmp_path):
    cfg = load_config(tmp_path)
    assert cfg.install_path == tmp_path
    assert cfg.default_action == "copy"
    assert cfg.fps == config.DEFAULT_FPS
    assert cfg.reduced_motion is False


def test_env_overrides_install_path(tmp_path, monkeypatch):
    monkeypatch.setenv(config.HOME_ENV, str(tmp_path / "elsewhere"))
    assert load_config().install_path == tmp_path / "elsewhere"


def test_derived_paths(tmp_path):
    cfg = ViewerConfig(install_path=tmp_path)
    assert cfg.projects_path == tmp_path / "projects"
    assert cfg.index_path == tmp_path / "www" / "projects.json"
    assert cfg.config_path == tmp_path / "config.json"
    assert cfg.log_path == tmp_path / "runtime.log"


def test_reads_recognised_keys(tmp_path):
    write_config(tmp_path, {"defaultAction": "move", "fps": 30, "reducedMotion": True,
                            "logLevel": "debug", "unknown": 1})
    cfg = load_config(tmp_path)
    assert cfg.default_action == "move"
    assert cfg.fps == 30
    assert cfg.reduced_motion is True
    assert cfg.log_level == "DEBUG"


def test_config_is_immutable(tmp_path):
    cfg = load_config(tmp_path)
    with pytest.raises(AttributeError):
        cfg.default_action = "move"


@pytest.mark.parametrize("data", [
    {"defaultAction": "link"},
    {"fps": 0},
    {"fps": "fast"},
    {"fps": True},
    "[1, 2]",
    "{broken",
])
def test_invalid_config(tmp_path, data):
    write_config(tmp_path, data)
    with pytest.raises(ConfigError):
        load_config(tmp_path)
