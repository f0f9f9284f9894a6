import random

import pytest

from errors import FrameLoadFailed
from frame_source import FrameSource, StaticManifestSource, StoreFrameSource
from playback import LOADING_TEXT, NO_FRAMES_TEXT, PlaybackController, State

from conftest import write_frames


class FakeSource(FrameSource):
    def __init__(self, projects, fail_at=None):
        self.projects = projects          # name -> list of frames
        self.fail_at = fail_at
        self.loaded = []

    def list_projects(self):
        return list(self.projects)

    def resolve_frame_count(self, project):
        return len(self.projects.get(project, []))

    def load_frame(self, project, index):
        if index == self.fail_at:
            raise FrameLoadFailed(project, index)
        self.loaded.append((project, index))
        return self.projects[project][index - 1]


class ManualScheduler:
    def __init__(self):
        self.pending = {}
        self.next_id = 0
        self.cancelled = []

    def request(self, cb):
        self.next_id += 1
        self.pending[self.next_id] = cb
        return self.next_id

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def fire(self, now):
        due, self.pending = self.pending, {}
        for cb in due.values():
            cb(now)


def frames(n, tag="f"):
    return [f"{tag}{i}" for i in range(n)]


@pytest.fixture
def sched():
    return ManualScheduler()


def test_starts_idle(sched):
    ctl = PlaybackController(FakeSource({}), sched)
    assert ctl.state is State.IDLE
    assert ctl.display() == NO_FRAMES_TEXT


def test_select_loads_all_frames_in_order_then_plays(sched):
    src = FakeSource({"walk": frames(5)})
    seen = []
    ctl = PlaybackController(src, sched, on_change=lambda c: seen.append(c.state))
    ctl.select("walk")
    assert src.loaded == [("walk", i) for i in range(1, 6)]
    assert seen[0] is State.LOADING
    assert ctl.state is State.READY
    assert ctl.playing
    assert ctl.display() == "f0"


def test_loading_text_while_loading(sched):
    texts = []
    ctl = PlaybackController(FakeSource({"walk": frames(2)}), sched,
                             on_change=lambda c: texts.append(c.display()))
    ctl.select("walk")
    assert texts[0] == LOADING_TEXT


def test_zero_frames_is_ready_with_no_frames_state(sched):
    ctl = PlaybackController(FakeSource({"empty": []}), sched)
    ctl.select("empty")
    assert ctl.state is State.READY
    assert not ctl.playing
    assert ctl.display() == NO_FRAMES_TEXT


def test_known_frame_count_skips_lookup(sched):
    src = FakeSource({"walk": frames(5)})
    ctl = PlaybackController(src, sched)
    ctl.select("walk", frame_count=2)
    assert len(ctl.frames) == 2


def test_failed_frame_discards_whole_load(sched):
    ctl = PlaybackController(FakeSource({"walk": frames(5)}, fail_at=3), sched)
    ctl.select("walk")
    assert ctl.state is State.READY
    assert ctl.frames == []
    assert ctl.error.index == 3
    assert not ctl.playing
    assert "frame 3" in ctl.display()


def test_advances_once_per_elapsed_interval(sched):
    ctl = PlaybackController(FakeSource({"walk": frames(10)}), sched, fps=10)
    ctl.select("walk")
    sched.fire(0.0)          # primes
    sched.fire(99.0)
    assert ctl.current == 0
    sched.fire(100.0)
    assert ctl.current == 1
    sched.fire(350.0)        # two and a half intervals late
    assert ctl.current == 3


def test_wraps_modulo_frame_count(sched):
    ctl = PlaybackController(FakeSource({"walk": frames(3)}), sched, fps=10)
    ctl.select("walk")
    sched.fire(0.0)
    sched.fire(500.0)
    assert ctl.current == 5 % 3


def test_jittered_ticks_keep_24fps_average(sched):
    n = 1000
    ctl = PlaybackController(FakeSource({"walk": frames(n)}), sched, fps=24)
    ctl.select("walk")
    rng = random.Random(3)
    now = 0.0
    sched.fire(now)
    for _ in range(500):
        now += rng.uniform(5, 80)
        sched.fire(now)
    assert abs(ctl.current - now / (1000 / 24)) <= 1


def test_fps_change_mid_playback_keeps_phase(sched):
    ctl = PlaybackController(FakeSource({"walk": frames(100)}), sched, fps=10)
    ctl.select("walk")
    sched.fire(0.0)
    sched.fire(130.0)                 # 1 step, 30 ms into the next
    ctl.set_fps(20)
    sched.fire(150.0)                 # 50 ms since last step → 1 more
    assert ctl.current == 2


def test_blur_pauses_and_focus_resumes(sched):
    ctl = PlaybackController(FakeSource({"walk": frames(10)}), sched, fps=10)
    ctl.select("walk")
    sched.fire(0.0)
    sched.fire(100.0)
    assert ctl.current == 1

    ctl.on_blur()
    assert not ctl.playing
    assert sched.pending == {}
    sched.fire(5000.0)
    assert ctl.current == 1

    ctl.on_focus()
    assert ctl.playing
    sched.fire(6000.0)               # re-primes, no jump for the paused time
    assert ctl.current == 1
    sched.fire(6100.0)
    assert ctl.current == 2


def test_reduced_motion_never_autoplays(sched):
    ctl = PlaybackController(FakeSource({"walk": frames(10)}), sched, reduced_motion=True)
    ctl.select("walk")
    assert ctl.state is State.READY
    assert not ctl.playing
    ctl.on_focus()
    assert not ctl.playing
    assert ctl.display() == "f0"


def test_select_while_blurred_waits_for_focus(sched):
    ctl = PlaybackController(FakeSource({"walk": frames(3)}), sched)
    ctl.on_blur()
    ctl.select("walk")
    assert not ctl.playing
    ctl.on_focus()
    assert ctl.playing


def test_switch_cancels_old_tick_and_ignores_stale_callbacks(sched):
    src = FakeSource({"a": frames(4, "a"), "b": frames(4, "b")})
    ctl = PlaybackController(src, sched, fps=10)
    ctl.select("a")
    sched.fire(0.0)
    stale = list(sched.pending.values())
    old_handle = list(sched.pending)[0]

    ctl.select("b")
    assert old_handle in sched.cancelled
    assert ctl.frames == frames(4, "b")

    for cb in stale:                 # a callback that escaped cancellation
        cb(10_000.0)
    assert ctl.current == 0
    assert ctl.display() == "b0"


def test_teardown_drops_buffer(sched):
    ctl = PlaybackController(FakeSource({"walk": frames(3)}), sched)
    ctl.select("walk")
    ctl.teardown()
    assert ctl.state is State.IDLE
    assert ctl.frames == []
    assert sched.pending == {}


def test_manifest_fps_applies(tmp_path, sched):
    write_frames(tmp_path / "large", range(1, 4))
    src = StaticManifestSource([{"name": "large", "frameCount": 3, "fps": 60}], tmp_path)
    ctl = PlaybackController(src, sched, fps=24)
    ctl.select("large")
    assert ctl.fps == 60
    assert ctl.display() == "frame 1"


def test_set_fps_rejects_non_positive(sched):
    ctl = PlaybackController(FakeSource({}), sched)
    with pytest.raises(ValueError):
        ctl.set_fps(0)


def test_project_without_fps_falls_back_to_default(tmp_path, sched):
    write_frames(tmp_path / "large", range(1, 4))
    write_frames(tmp_path / "plain", range(1, 3))
    src = StaticManifestSource([{"name": "large", "frameCount": 3, "fps": 60},
                                {"name": "plain", "frameCount": 2}], tmp_path)
    ctl = PlaybackController(src, sched, fps=24)
    ctl.select("large")
    ctl.select("plain")
    assert ctl.fps == 24

    ctl.set_fps(12)
    ctl.select("large")
    ctl.select("plain")
    assert ctl.fps == 12


def test_undecodable_frame_shows_error(store, make_frames, sched):
    src = make_frames("walk", range(1, 3))
    (src / "frame_0002.txt").write_bytes(b"\xff\xfe bad")
    store.add(src)
    ctl = PlaybackController(StoreFrameSource(store), sched)
    ctl.select("walk")
    assert ctl.state is State.READY
    assert ctl.frames == []
    assert ctl.error.index == 2
    assert "frame 2" in ctl.display()
