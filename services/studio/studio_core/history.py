from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Any, Callable, Optional

from libs.core import logging as core_logging
from libs.core.models import ResumeData, ResumeProject, ResumeVersion, ScoreRecord

from .errors import VersionNotFoundError

LOGGER = core_logging.get_logger("studio")

MAX_VERSIONS = 15


def now_ms() -> int:
    return int(time.time() * 1000)


def push_version(
    project: ResumeProject,
    data: ResumeData,
    note: Optional[str] = None,
    now: Optional[int] = None,
) -> ResumeVersion:
    project.version_counter += 1
    version = ResumeVersion(
        timestamp=now if now is not None else now_ms(),
        data=data.model_copy(deep=True),
        note=note or f"Version {project.version_counter}",
    )
    project.versions = [version, *project.versions][:MAX_VERSIONS]
    return version


def find_version(project: ResumeProject, version_id: str) -> ResumeVersion:
    for version in project.versions:
        if version.id == version_id:
            return version
    raise VersionNotFoundError(version_id)


def restore_version(project: ResumeProject, version_id: str) -> ResumeData:
    return find_version(project, version_id).data.model_copy(deep=True)


def record_score(project: ResumeProject, score: int, now: Optional[int] = None) -> ScoreRecord:
    record = ScoreRecord(timestamp=now if now is not None else now_ms(), score=int(score))
    project.score_history.append(record)
    return record


def previous_score(project: ResumeProject) -> Optional[int]:
    """Score of the audit before the latest one, for delta display."""
    if len(project.score_history) < 2:
        return None
    return project.score_history[-2].score


def score_delta(project: ResumeProject) -> Optional[int]:
    before = previous_score(project)
    if before is None:
        return None
    return project.score_history[-1].score - before


class SaveState(str, Enum):
    clean = "clean"
    dirty = "dirty"


class Autosaver:
    """Trailing-edge debounce of saves for one project.

    Every ``touch`` restarts the countdown; the save fires once the working copy
    has been left alone for ``delay_s``. A fire whose data deep-equals the last
    saved snapshot is skipped.
    """

    def __init__(
        self,
        save: Callable[[ResumeData], Any],
        delay_s: float = 2.0,
        *,
        timer_factory: Callable[..., Any] = threading.Timer,
        saved: Optional[ResumeData] = None,
    ) -> None:
        self._save = save
        self.delay_s = delay_s
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Any = None
        self._pending: Optional[ResumeData] = None
        self._saved = saved.model_copy(deep=True) if saved is not None else None

    @property
    def state(self) -> SaveState:
        with self._lock:
            if self._pending is None or self._pending == self._saved:
                return SaveState.clean
            return SaveState.dirty

    def touch(self, data: ResumeData) -> None:
        with self._lock:
            self._pending = data.model_copy(deep=True)
            if self._timer is not None:
                self._timer.cancel()
            timer = self._timer_factory(self.delay_s, self._fire)
            timer.daemon = True
            self._timer = timer
        timer.start()

    def mark_saved(self, data: ResumeData) -> None:
        with self._lock:
            self._saved = data.model_copy(deep=True)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            pending = self._pending
            if pending is None or pending == self._saved:
                LOGGER.debug("autosave_skipped", reason="unchanged")
                return
        if self._save(pending) is False:
            LOGGER.warning("autosave_failed")
            return
        with self._lock:
            self._saved = pending
        LOGGER.info("autosave_fired")
