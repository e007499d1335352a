from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[2]
STUDIO_SERVICE_ROOT = ROOT / "services" / "studio"
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(STUDIO_SERVICE_ROOT))
from studio_core import history  # type: ignore  # noqa: E402
from studio_core.errors import VersionNotFoundError  # type: ignore  # noqa: E402

from libs.core.models import ResumeData, ResumeProject, sample_resume  # noqa: E402


class FakeClock:
    """Virtual milliseconds shared by fake timers."""

    def __init__(self) -> None:
        self.now_ms = 0
        self.timers: List["FakeTimer"] = []

    def timer(self, delay_s: float, fn: Callable[[], None]) -> "FakeTimer":
        timer = FakeTimer(self, delay_s, fn)
        self.timers.append(timer)
        return timer

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [
                t for t in self.timers if t.started and not t.cancelled and not t.fired and t.due_ms <= target
            ]
            if not due:
                break
            timer = min(due, key=lambda t: t.due_ms)
            self.now_ms = timer.due_ms
            timer.fired = True
            timer.fn()
        self.now_ms = target


class FakeTimer:
    def __init__(self, clock: FakeClock, delay_s: float, fn: Callable[[], None]) -> None:
        self.clock = clock
        self.delay_ms = int(delay_s * 1000)
        self.fn = fn
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False
        self.due_ms: Optional[int] = None

    def start(self) -> None:
        self.started = True
        self.due_ms = self.clock.now_ms + self.delay_ms

    def cancel(self) -> None:
        self.cancelled = True


def _project() -> ResumeProject:
    return ResumeProject(id="p1", user_id="u1", last_modified=0, data=sample_resume())


def test_version_cap_keeps_fifteen_newest_first() -> None:
    project = _project()
    for n in range(1, 17):
        data = sample_resume()
        data.personal_info.summary = f"save {n}"
        history.push_version(project, data, now=n)

    assert len(project.versions) == history.MAX_VERSIONS == 15
    assert [version.timestamp for version in project.versions] == list(range(16, 1, -1))
    assert project.versions[0].note == "Version 16"
    assert project.versions[-1].data.personal_info.summary == "save 2"
    assert project.version_counter == 16


def test_push_version_snapshots_a_deep_copy() -> None:
    project = _project()
    data = sample_resume()
    version = history.push_version(project, data, note="Before optimize")
    data.skills.append("Zig")

    assert "Zig" not in version.data.skills
    assert version.note == "Before optimize"


def test_restore_version_returns_independent_copy() -> None:
    project = _project()
    version = history.push_version(project, sample_resume())
    restored = history.restore_version(project, version.id)
    restored.skills.clear()

    assert version.data.skills
    with pytest.raises(VersionNotFoundError):
        history.restore_version(project, "missing")


def test_score_history_is_append_only() -> None:
    project = _project()
    assert history.previous_score(project) is None

    history.record_score(project, 62, now=1)
    assert history.score_delta(project) is None
    history.record_score(project, 75, now=2)
    history.record_score(project, 71, now=3)

    assert [record.score for record in project.score_history] == [62, 75, 71]
    assert history.previous_score(project) == 75
    assert history.score_delta(project) == -4


def test_autosave_debounces_to_single_trailing_save() -> None:
    clock = FakeClock()
    saved: list[tuple[int, ResumeData]] = []

    def _save(data: ResumeData) -> bool:
        saved.append((clock.now_ms, data))
        return True

    autosaver = history.Autosaver(_save, 2.0, timer_factory=clock.timer, saved=sample_resume())

    first = sample_resume()
    first.personal_info.summary = "edit one"
    autosaver.touch(first)
    assert autosaver.state == history.SaveState.dirty

    clock.advance(1000)
    second = sample_resume()
    second.personal_info.summary = "edit two"
    autosaver.touch(second)

    clock.advance(1999)
    assert saved == []

    clock.advance(1)
    assert [(at, data.personal_info.summary) for at, data in saved] == [(3000, "edit two")]
    assert autosaver.state == history.SaveState.clean
    assert all(timer.daemon for timer in clock.timers)


def test_autosave_skips_when_data_matches_last_save() -> None:
    clock = FakeClock()
    saved: list[ResumeData] = []
    autosaver = history.Autosaver(saved.append, 2.0, timer_factory=clock.timer, saved=sample_resume())

    autosaver.touch(sample_resume())
    assert autosaver.state == history.SaveState.clean
    clock.advance(5000)
    assert saved == []


def test_autosave_failure_stays_dirty() -> None:
    clock = FakeClock()
    autosaver = history.Autosaver(lambda data: False, 2.0, timer_factory=clock.timer, saved=ResumeData())

    autosaver.touch(sample_resume())
    clock.advance(2000)
    assert autosaver.state == history.SaveState.dirty


def test_cancel_stops_pending_save() -> None:
    clock = FakeClock()
    saved: list[ResumeData] = []
    autosaver = history.Autosaver(saved.append, 2.0, timer_factory=clock.timer, saved=ResumeData())

    autosaver.touch(sample_resume())
    autosaver.cancel()
    clock.advance(10_000)
    assert saved == []
