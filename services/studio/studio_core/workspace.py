from __future__ import annotations

import json
import re
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Tuple

from libs.core import logging as core_logging
from libs.core.document_store import DocumentStoreError, ProjectStore
from libs.core.models import (
    LIST_SECTIONS,
    ImprovementSection,
    KeywordAnalysis,
    ResumeData,
    ResumeImprovement,
    ResumeProject,
    ResumeSource,
    ReviewResult,
    TemplateType,
    UserProfile,
    sample_resume,
)

from . import history, merge, service
from .config import DEFAULT_AUTOSAVE_DELAY_S
from .context import describe_item, find_item, is_missing_value, refinable_sections
from .errors import ActionBusyError, ProjectNotFoundError, StaleResultError, StudioError
from .gateway import ModelGateway
from .links import linkedin_error, project_link_error, website_error

LOGGER = core_logging.get_logger("studio")

_FILENAME_SPACES_RE = re.compile(r"\s+")


class Workspace:
    """Editing session over one project.

    Holds the working copy, reconciles it into the project on save, and runs AI
    actions under per-action busy flags. ``revision`` moves on every edit so
    whole-document results computed from an older revision can be detected.
    """

    def __init__(
        self,
        project: ResumeProject,
        store: ProjectStore,
        gateway: ModelGateway,
        *,
        autosave_delay_s: float = DEFAULT_AUTOSAVE_DELAY_S,
        timer_factory: Callable[..., Any] = threading.Timer,
        clock: Callable[[], int] = history.now_ms,
    ) -> None:
        self.project = project
        self.store = store
        self.gateway = gateway
        self.data = project.data.model_copy(deep=True)
        self.revision = 0
        self.job_description = ""
        self.analysis: Optional[KeywordAnalysis] = None
        self.pending_review: Optional[ReviewResult] = None
        self._clock = clock
        self._lock = threading.RLock()
        self._busy: set[str] = set()
        self.autosaver = history.Autosaver(
            self._autosave,
            autosave_delay_s,
            timer_factory=timer_factory,
            saved=project.data,
        )

    # -- busy flags -------------------------------------------------------

    def is_busy(self, action: str) -> bool:
        with self._lock:
            return action in self._busy

    @contextmanager
    def _busy_flag(self, action: str) -> Iterator[None]:
        with self._lock:
            if action in self._busy:
                raise ActionBusyError(action)
            self._busy.add(action)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(action)

    # -- editing ----------------------------------------------------------

    def edit(self, data: ResumeData) -> None:
        with self._lock:
            self.data = data.model_copy(deep=True)
            self.revision += 1
            snapshot = self.data
        self.autosaver.touch(snapshot)

    def _apply(self, improvement: ResumeImprovement) -> None:
        with self._lock:
            updated = merge.apply_improvement(self.data, improvement)
        if updated is not self.data:
            self.edit(updated)

    def update_personal_info(self, field: str, value: str) -> Optional[str]:
        self._apply(
            ResumeImprovement(
                section=ImprovementSection.personal_info.value, field=field, suggestion=value
            )
        )
        if field == "linkedin":
            return linkedin_error(value)
        if field == "website":
            return website_error(value)
        return None

    def set_skills_text(self, text: str) -> List[str]:
        self._apply(ResumeImprovement(section=ImprovementSection.skills.value, field="skills", suggestion=text))
        return list(self.data.skills)

    def update_item(self, section: str, item_id: str, field: str, value: str) -> Optional[str]:
        self._require_list_section(section)
        self._apply(
            ResumeImprovement(section=section, item_id=item_id, field=field, suggestion=value)
        )
        if section == "projects" and field == "link":
            return project_link_error(value)
        return None

    def add_item(self, section: str, **fields: Any) -> str:
        model = self._require_list_section(section)
        fields.pop("id", None)
        item = model.model_validate(fields)
        with self._lock:
            updated = self.data.model_copy(deep=True)
            getattr(updated, section).append(item)
        self.edit(updated)
        return item.id

    def remove_item(self, section: str, item_id: str) -> None:
        self._require_list_section(section)
        with self._lock:
            updated = self.data.model_copy(deep=True)
            setattr(
                updated, section, [item for item in getattr(updated, section) if item.id != item_id]
            )
        self.edit(updated)

    @staticmethod
    def _require_list_section(section: str) -> Any:
        model = LIST_SECTIONS.get(section)
        if model is None:
            raise StudioError(f"unknown_list_section:{section}")
        return model

    def set_template(self, template: TemplateType) -> bool:
        return self._persist(self.data, template=template)

    def rename(self, title: str) -> bool:
        if is_missing_value(title):
            raise StudioError("title_required")
        return self._persist(self.data, title=title.strip())

    def restore_version(self, version_id: str) -> ResumeData:
        restored = history.restore_version(self.project, version_id)
        self.edit(restored)
        return restored

    # -- saving -----------------------------------------------------------

    def save(self, note: Optional[str] = None) -> bool:
        """Explicit save: reconcile the working copy and snapshot a version."""
        return self._persist(self.data, create_version=True, note=note)

    def _autosave(self, data: ResumeData) -> bool:
        return self._persist(data)

    def _persist(
        self,
        data: ResumeData,
        *,
        create_version: bool = False,
        note: Optional[str] = None,
        template: Optional[TemplateType] = None,
        title: Optional[str] = None,
    ) -> bool:
        with self._lock:
            updated = self.project.model_copy(deep=True)
            updated.data = data.model_copy(deep=True)
            updated.last_modified = self._clock()
            if template is not None:
                updated.template = template
            if title is not None:
                updated.title = title
            version = None
            if create_version:
                version = history.push_version(updated, data, note=note, now=updated.last_modified)
            try:
                self.store.save_project(updated)
            except DocumentStoreError as exc:
                LOGGER.error("project_save_failed", project_id=updated.id, error=str(exc))
                return False
            self.project = updated
        self.autosaver.mark_saved(data)
        core_logging.log_event(
            LOGGER,
            "project_saved",
            {
                "project_id": updated.id,
                "version_id": version.id if version else None,
                "versions": len(updated.versions),
            },
        )
        return True

    def close(self, save: bool = True) -> None:
        self.autosaver.cancel()
        if save and self.autosaver.state == history.SaveState.dirty:
            self._persist(self.data)

    # -- AI actions -------------------------------------------------------

    def _snapshot(self) -> Tuple[int, ResumeData]:
        with self._lock:
            return self.revision, self.data.model_copy(deep=True)

    def _replace_from(self, action: str, result: ResumeData, base_revision: int) -> None:
        with self._lock:
            if self.revision != base_revision:
                LOGGER.warning(
                    "stale_result_detected",
                    action=action,
                    base_revision=base_revision,
                    current_revision=self.revision,
                )
                raise StaleResultError(action, base_revision, self.revision, result)
        self.accept_replacement(result)

    def accept_replacement(self, result: ResumeData) -> None:
        """Overwrite the working copy with a whole-document result and snapshot it."""
        with self._lock:
            self.data = merge.replace_resume(self.data, result)
            self.revision += 1
        self.save()

    def optimize(self, job_description: str) -> ResumeData:
        with self._busy_flag("optimize"):
            self.job_description = job_description
            base_revision, snapshot = self._snapshot()
            optimized = service.optimize_resume(snapshot, job_description, self.gateway)
            self._replace_from("optimize", optimized, base_revision)
        try:
            self.analyze(job_description)
        except StudioError as exc:
            LOGGER.warning("chained_analysis_failed", error=exc.detail)
        return self.data

    def analyze(self, job_description: Optional[str] = None) -> KeywordAnalysis:
        jd = job_description if job_description is not None else self.job_description
        with self._busy_flag("analyze"):
            _, snapshot = self._snapshot()
            self.analysis = service.analyze_keywords(snapshot, jd, self.gateway)
        return self.analysis

    def review(self, job_description: Optional[str] = None) -> ReviewResult:
        jd = job_description if job_description is not None else self.job_description
        with self._busy_flag("review"):
            _, snapshot = self._snapshot()
            review = service.review_resume(snapshot, self.gateway, jd)
            with self._lock:
                self.pending_review = review
                history.record_score(self.project, review.score, now=self._clock())
        self._persist(self.data)
        return review

    def apply_improvement(self, improvement_id: str) -> ResumeData:
        with self._lock:
            review = self.pending_review
            improvement = None
            if review is not None:
                improvement = next(
                    (item for item in review.improvements if item.id == improvement_id), None
                )
            if improvement is None:
                raise StudioError(f"improvement_not_found:{improvement_id}", status_code=404)
            updated = merge.apply_improvement(self.data, improvement)
            self.pending_review = merge.consume_improvement(review, improvement_id)
        self.edit(updated)
        self._persist(self.data)
        return self.data

    def generate_summary(self, job_description: Optional[str] = None) -> str:
        jd = job_description if job_description is not None else self.job_description
        with self._busy_flag("summary"):
            _, snapshot = self._snapshot()
            summary = service.generate_summary(snapshot, self.gateway, jd)
            self.update_personal_info("summary", summary)
        return summary

    def enhance_description(
        self, section: str, item_id: str, job_description: Optional[str] = None
    ) -> Optional[str]:
        if section not in refinable_sections():
            raise StudioError(f"section_not_refinable:{section}")
        jd = job_description if job_description is not None else self.job_description
        with self._busy_flag("enhance"):
            _, snapshot = self._snapshot()
            item = find_item(snapshot, section, item_id)
            if item is None:
                return None
            refined = service.refine_description(
                item.description, describe_item(section, item), self.gateway, jd
            )
            self.update_item(section, item_id, "description", refined)
        return refined

    def import_source(self, source: ResumeSource) -> ResumeData:
        with self._busy_flag("import"):
            base_revision, _ = self._snapshot()
            extracted = service.extract_resume(source, self.gateway)
            self._replace_from("import", extracted, base_revision)
        return self.data

    # -- export -----------------------------------------------------------

    def export_json(self) -> Tuple[str, str]:
        with self._lock:
            wire = self.data.to_wire()
        name = _FILENAME_SPACES_RE.sub("_", wire["personalInfo"]["fullName"]).lower()
        filename = f"resume-{name or 'draft'}.json"
        return filename, json.dumps(wire, indent=2, ensure_ascii=False)


class ProjectManager:
    def __init__(
        self,
        store: ProjectStore,
        gateway: ModelGateway,
        *,
        autosave_delay_s: float = DEFAULT_AUTOSAVE_DELAY_S,
        timer_factory: Callable[..., Any] = threading.Timer,
        clock: Callable[[], int] = history.now_ms,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.autosave_delay_s = autosave_delay_s
        self._timer_factory = timer_factory
        self._clock = clock

    def list_projects(self, user: UserProfile) -> List[ResumeProject]:
        try:
            return self.store.list_projects(user.uid)
        except DocumentStoreError as exc:
            LOGGER.error("project_list_failed", user_id=user.uid, error=str(exc))
            return []

    def load_master_profile(self, user: UserProfile) -> Optional[ResumeData]:
        try:
            return self.store.load_master_profile(user.uid)
        except DocumentStoreError as exc:
            LOGGER.error("master_profile_load_failed", user_id=user.uid, error=str(exc))
            return None

    def save_master_profile(self, user: UserProfile, data: ResumeData) -> bool:
        try:
            self.store.save_master_profile(user.uid, data)
        except DocumentStoreError as exc:
            LOGGER.error("master_profile_save_failed", user_id=user.uid, error=str(exc))
            return False
        return True

    def create_project(
        self, user: UserProfile, title: str = "Untitled Resume"
    ) -> Optional[ResumeProject]:
        master = self.load_master_profile(user)
        seed = master if master is not None else sample_resume()
        project = ResumeProject(
            id=uuid.uuid4().hex,
            user_id=user.uid,
            title=title,
            last_modified=self._clock(),
            data=seed,
            template=TemplateType.modern,
        )
        try:
            self.store.save_project(project)
        except DocumentStoreError as exc:
            LOGGER.error("project_create_failed", user_id=user.uid, error=str(exc))
            return None
        LOGGER.info("project_created", project_id=project.id, from_master_profile=master is not None)
        return project

    def delete_project(self, user: UserProfile, project_id: str) -> bool:
        try:
            self.store.delete_project(user.uid, project_id)
        except DocumentStoreError as exc:
            LOGGER.error("project_delete_failed", project_id=project_id, error=str(exc))
            return False
        return True

    def open_project(self, user: UserProfile, project_id: str) -> Workspace:
        try:
            project = self.store.get_project(user.uid, project_id)
        except DocumentStoreError as exc:
            LOGGER.error("project_open_failed", project_id=project_id, error=str(exc))
            project = None
        if project is None:
            raise ProjectNotFoundError(project_id)
        return Workspace(
            project,
            self.store,
            self.gateway,
            autosave_delay_s=self.autosave_delay_s,
            timer_factory=self._timer_factory,
            clock=self._clock,
        )
