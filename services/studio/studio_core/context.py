from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from libs.core.models import Award, Experience, Project, ResumeData

# Sections whose items carry a free-text description worth refining, mapped to
# the (title, subtitle) attributes used to describe the item to the model.
_REFINABLE_SECTIONS: Dict[str, Tuple[str, str]] = {
    "experience": ("position", "company"),
    "projects": ("name", "technologies"),
    "awards": ("title", "issuer"),
}


def is_missing_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def refinable_sections() -> tuple[str, ...]:
    return tuple(_REFINABLE_SECTIONS)


def find_item(resume: ResumeData, section: str, item_id: str) -> Optional[Any]:
    items = getattr(resume, section, None)
    if not isinstance(items, list):
        return None
    for item in items:
        if item.id == item_id:
            return item
    return None


def describe_item(section: str, item: Experience | Project | Award) -> str:
    title_attr, subtitle_attr = _REFINABLE_SECTIONS[section]
    title = getattr(item, title_attr, "") or ""
    subtitle = getattr(item, subtitle_attr, "") or ""
    if is_missing_value(subtitle):
        return title.strip()
    return f"{title.strip()} from {subtitle.strip()}"
