from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
STUDIO_SERVICE_ROOT = ROOT / "services" / "studio"
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(STUDIO_SERVICE_ROOT))
from studio_core import links  # type: ignore  # noqa: E402

from libs.core.models import sample_resume  # noqa: E402


def test_validate_url() -> None:
    assert links.validate_url("")
    assert links.validate_url("alex.dev")
    assert links.validate_url("https://github.com/alex")
    assert not links.validate_url("localhost")
    assert not links.validate_url("my site.com")
    assert not links.validate_url(".com")


def test_linkedin_requires_linkedin_host() -> None:
    assert links.linkedin_error("") is None
    assert links.linkedin_error("linkedin.com/in/alexdev") is None
    assert links.linkedin_error("github.com/alexdev") == links.LINKEDIN_MESSAGE


def test_sample_resume_has_no_link_errors() -> None:
    assert links.validate_resume_links(sample_resume()) == {}


def test_validate_resume_links_keys() -> None:
    resume = sample_resume()
    resume.personal_info.website = "not a site"
    resume.projects[0].link = "nowhere"

    assert links.validate_resume_links(resume) == {
        "personal-website": links.WEBSITE_MESSAGE,
        "proj-link-proj-1": links.PROJECT_LINK_MESSAGE,
    }
