from __future__ import annotations

import secrets
import string
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_LENGTH = 9


def generate_item_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


class _WireModel(BaseModel):
    """Base for records stored and exchanged with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict:
        return self.model_dump(by_alias=True, mode="json")


class TemplateType(str, Enum):
    modern = "MODERN"
    classic = "CLASSIC"
    minimal = "MINIMAL"
    tech = "TECH"


class SourceKind(str, Enum):
    text = "text"
    pdf = "pdf"
    url = "url"


class ImprovementSection(str, Enum):
    personal_info = "personalInfo"
    skills = "skills"
    experience = "experience"
    education = "education"
    projects = "projects"
    awards = "awards"
    certificates = "certificates"


class PersonalInfo(_WireModel):
    full_name: str = Field(default="", alias="fullName")
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    website: str = ""
    summary: str = ""


class Experience(_WireModel):
    id: str = Field(default_factory=generate_item_id)
    company: str = ""
    position: str = ""
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")
    location: str = ""
    description: str = ""


class Education(_WireModel):
    id: str = Field(default_factory=generate_item_id)
    school: str = ""
    degree: str = ""
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")
    location: str = ""
    description: str = ""
    gpa: Optional[str] = None
    cgpa: Optional[str] = None
    coursework: Optional[str] = None


class Project(_WireModel):
    id: str = Field(default_factory=generate_item_id)
    name: str = ""
    technologies: str = ""
    link: str = ""
    date: str = ""
    description: str = ""


class Award(_WireModel):
    id: str = Field(default_factory=generate_item_id)
    title: str = ""
    issuer: str = ""
    date: str = ""
    description: str = ""


class Certificate(_WireModel):
    id: str = Field(default_factory=generate_item_id)
    name: str = ""
    issuer: str = ""
    date: str = ""


class ResumeData(_WireModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo, alias="personalInfo")
    skills: List[str] = Field(default_factory=list)
    experience: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    awards: List[Award] = Field(default_factory=list)
    certificates: List[Certificate] = Field(default_factory=list)


# Wire keys of the personal info record, in display order.
PERSONAL_INFO_FIELDS = tuple(
    field.alias or name for name, field in PersonalInfo.model_fields.items()
)

# List sections keyed by wire name, with the item model each one holds.
LIST_SECTIONS: Dict[str, type[_WireModel]] = {
    "experience": Experience,
    "education": Education,
    "projects": Project,
    "awards": Award,
    "certificates": Certificate,
}


class ResumeVersion(_WireModel):
    id: str = Field(default_factory=generate_item_id)
    timestamp: int
    data: ResumeData
    note: Optional[str] = None


class ScoreRecord(_WireModel):
    timestamp: int
    score: int


class ResumeProject(_WireModel):
    id: str
    user_id: str = Field(alias="userId")
    title: str = "Untitled Resume"
    last_modified: int = Field(alias="lastModified")
    data: ResumeData = Field(default_factory=ResumeData)
    template: TemplateType = TemplateType.modern
    versions: List[ResumeVersion] = Field(default_factory=list)
    score_history: List[ScoreRecord] = Field(default_factory=list, alias="scoreHistory")
    version_counter: int = Field(default=0, alias="versionCounter")


class KeywordAnalysis(_WireModel):
    score: int = Field(default=0, ge=0, le=100)
    matching_keywords: List[str] = Field(default_factory=list, alias="matchingKeywords")
    missing_keywords: List[str] = Field(default_factory=list, alias="missingKeywords")
    suggestions: List[str] = Field(default_factory=list)


class ResumeImprovement(_WireModel):
    id: str = Field(default_factory=generate_item_id)
    section: str
    item_id: Optional[str] = Field(default=None, alias="itemId")
    field: str
    issue: str = ""
    suggestion: str = ""


class ReviewResult(_WireModel):
    score: int = Field(default=0, ge=0, le=100)
    summary: str = ""
    improvements: List[ResumeImprovement] = Field(default_factory=list)


class UserProfile(_WireModel):
    uid: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    email: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    is_guest: bool = Field(default=False, alias="isGuest")


def guest_profile() -> UserProfile:
    return UserProfile(
        uid=f"guest_{generate_item_id()}",
        display_name="Guest User",
        is_guest=True,
    )


class ResumeSource(BaseModel):
    kind: SourceKind
    # Raw text, base64 encoded PDF bytes, or a public profile URL.
    value: str


def sample_resume() -> ResumeData:
    """Starter content for projects created without a master profile."""
    return ResumeData.model_validate(
        {
            "personalInfo": {
                "fullName": "Alex Developer",
                "email": "alex@example.com",
                "phone": "(555) 123-4567",
                "location": "San Francisco, CA",
                "linkedin": "linkedin.com/in/alexdev",
                "website": "alex.dev",
                "summary": (
                    "Experienced Full Stack Developer with a passion for building scalable web "
                    "applications. Proven track record of delivering high-quality code and "
                    "optimizing system performance."
                ),
            },
            "skills": [
                "JavaScript",
                "TypeScript",
                "React",
                "Node.js",
                "Python",
                "AWS",
                "Docker",
                "GraphQL",
            ],
            "experience": [
                {
                    "id": "exp-1",
                    "company": "Tech Solutions Inc.",
                    "position": "Senior Frontend Engineer",
                    "startDate": "2021-01",
                    "endDate": "Present",
                    "location": "Remote",
                    "description": (
                        "• Led the migration of a legacy monolithic application to a "
                        "micro-frontend architecture.\n"
                        "• Improved site performance by 40% through code splitting and lazy loading."
                    ),
                },
                {
                    "id": "exp-2",
                    "company": "WebCorp",
                    "position": "Software Developer",
                    "startDate": "2018-06",
                    "endDate": "2020-12",
                    "location": "New York, NY",
                    "description": (
                        "• Developed and maintained client-facing web applications.\n"
                        "• Integrated third-party APIs for payment processing and analytics."
                    ),
                },
            ],
            "education": [
                {
                    "id": "edu-1",
                    "school": "University of Technology",
                    "degree": "B.S. Computer Science",
                    "startDate": "2014-09",
                    "endDate": "2018-05",
                    "location": "Boston, MA",
                    "description": "Graduated with Honors.",
                    "gpa": "3.8/4.0",
                    "coursework": "Data Structures, Algorithms, Distributed Systems",
                }
            ],
            "projects": [
                {
                    "id": "proj-1",
                    "name": "E-commerce Dashboard",
                    "technologies": "React, Redux, Firebase",
                    "link": "github.com/alex/dashboard",
                    "date": "2022-08 - 2022-12",
                    "description": "• Built a dashboard for online retailers to manage inventory.",
                }
            ],
            "awards": [
                {
                    "id": "awd-1",
                    "title": "Outstanding Innovation Award",
                    "issuer": "Tech Solutions Inc.",
                    "date": "2022-11",
                    "description": "Recognized for a caching solution that cut server costs.",
                }
            ],
            "certificates": [
                {
                    "id": "cert-1",
                    "name": "AWS Certified Solutions Architect",
                    "issuer": "Amazon Web Services",
                    "date": "2023-03",
                }
            ],
        }
    )
