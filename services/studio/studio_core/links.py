from __future__ import annotations

import re
from typing import Dict, Optional
from urllib.parse import urlparse

from libs.core.models import ResumeData

LINKEDIN_MESSAGE = "Please enter a valid LinkedIn URL (e.g. linkedin.com/in/name)"
WEBSITE_MESSAGE = "Please enter a valid URL"
PROJECT_LINK_MESSAGE = "Please enter a valid URL (e.g. github.com/username)"

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def validate_url(value: Optional[str]) -> bool:
    if not value:
        return True
    if "." not in value or any(ch.isspace() for ch in value.strip()):
        return False
    candidate = value.strip()
    if not _SCHEME_RE.match(candidate):
        candidate = f"https://{candidate}"
    try:
        parsed = urlparse(candidate)
        host = parsed.hostname
    except ValueError:
        return False
    return bool(host) and "." in host and not host.startswith(".") and not host.endswith(".")


def linkedin_error(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    if not validate_url(value) or "linkedin.com" not in value.lower():
        return LINKEDIN_MESSAGE
    return None


def website_error(value: Optional[str]) -> Optional[str]:
    if value and not validate_url(value):
        return WEBSITE_MESSAGE
    return None


def project_link_error(value: Optional[str]) -> Optional[str]:
    if not validate_url(value):
        return PROJECT_LINK_MESSAGE
    return None


def validate_resume_links(resume: ResumeData) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    message = linkedin_error(resume.personal_info.linkedin)
    if message:
        errors["personal-linkedin"] = message
    message = website_error(resume.personal_info.website)
    if message:
        errors["personal-website"] = message
    for project in resume.projects:
        message = project_link_error(project.link)
        if message:
            errors[f"proj-link-{project.id}"] = message
    return errors
