"""Applying model output to a working copy of a resume.

Whole-document results replace the working copy outright. Review suggestions
are applied one at a time through a per-section dispatch table; each section
only accepts the fields its record type defines.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from libs.core import logging as core_logging
from libs.core.models import (
    LIST_SECTIONS,
    ImprovementSection,
    PersonalInfo,
    ResumeData,
    ResumeImprovement,
    ReviewResult,
)

from .errors import ImprovementError

LOGGER = core_logging.get_logger("studio")

_Applier = Callable[[ResumeData, ResumeImprovement], ResumeData]


def _wire_to_attr(model: type) -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for name, field in model.model_fields.items():
        if name == "id":
            continue
        mapping[field.alias or name] = name
    return mapping


def split_skills(text: str) -> List[str]:
    return [part.strip() for part in (text or "").split(",") if part.strip()]


def replace_resume(current: ResumeData, replacement: ResumeData) -> ResumeData:
    return replacement.model_copy(deep=True)


def _personal_info_applier() -> _Applier:
    fields = _wire_to_attr(PersonalInfo)

    def apply(resume: ResumeData, improvement: ResumeImprovement) -> ResumeData:
        attr = fields.get(improvement.field)
        if attr is None:
            raise ImprovementError(f"unsupported_field:personalInfo.{improvement.field}")
        updated = resume.model_copy(deep=True)
        setattr(updated.personal_info, attr, improvement.suggestion)
        return updated

    return apply


def _skills_applier() -> _Applier:
    def apply(resume: ResumeData, improvement: ResumeImprovement) -> ResumeData:
        updated = resume.model_copy(deep=True)
        updated.skills = split_skills(improvement.suggestion)
        return updated

    return apply


def _list_applier(section: str) -> _Applier:
    fields = _wire_to_attr(LIST_SECTIONS[section])

    def apply(resume: ResumeData, improvement: ResumeImprovement) -> ResumeData:
        attr = fields.get(improvement.field)
        if attr is None:
            raise ImprovementError(f"unsupported_field:{section}.{improvement.field}")
        if not improvement.item_id:
            LOGGER.info("improvement_skipped", section=section, reason="missing_item_id")
            return resume
        items = getattr(resume, section)
        index = next(
            (idx for idx, item in enumerate(items) if item.id == improvement.item_id), None
        )
        if index is None:
            LOGGER.info(
                "improvement_skipped",
                section=section,
                item_id=improvement.item_id,
                reason="item_not_found",
            )
            return resume
        updated = resume.model_copy(deep=True)
        setattr(getattr(updated, section)[index], attr, improvement.suggestion)
        return updated

    return apply


_APPLIERS: Dict[ImprovementSection, _Applier] = {
    ImprovementSection.personal_info: _personal_info_applier(),
    ImprovementSection.skills: _skills_applier(),
    **{ImprovementSection(section): _list_applier(section) for section in LIST_SECTIONS},
}


def apply_improvement(resume: ResumeData, improvement: ResumeImprovement) -> ResumeData:
    try:
        section = ImprovementSection(improvement.section)
    except ValueError as exc:
        raise ImprovementError(f"unknown_section:{improvement.section}") from exc
    return _APPLIERS[section](resume, improvement)


def consume_improvement(review: ReviewResult, improvement_id: str) -> ReviewResult:
    remaining = [item for item in review.improvements if item.id != improvement_id]
    return review.model_copy(update={"improvements": remaining})
