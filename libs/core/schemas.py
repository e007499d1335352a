from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Type

from pydantic import BaseModel

from . import models

SCHEMA_TARGETS: Dict[str, Type[BaseModel]] = {
    "ResumeData": models.ResumeData,
    "ResumeProject": models.ResumeProject,
    "ResumeImprovement": models.ResumeImprovement,
    "ReviewResult": models.ReviewResult,
    "KeywordAnalysis": models.KeywordAnalysis,
    "UserProfile": models.UserProfile,
}


def export_schemas(target_dir: Path) -> list[Path]:
    target_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, model in SCHEMA_TARGETS.items():
        schema_path = target_dir / f"{name}.json"
        schema = model.model_json_schema(by_alias=True)
        schema_path.write_text(json.dumps(schema, indent=2), encoding="utf-8")
        written.append(schema_path)
    return written


# Response schemas below use the OpenAPI subset accepted by generateContent.


def _string(description: str | None = None, enum: list[str] | None = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "STRING"}
    if description:
        schema["description"] = description
    if enum:
        schema["enum"] = enum
    return schema


def _string_list(description: str | None = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "ARRAY", "items": {"type": "STRING"}}
    if description:
        schema["description"] = description
    return schema


def _item_list(*fields: str) -> Dict[str, Any]:
    return {
        "type": "ARRAY",
        "items": {
            "type": "OBJECT",
            "properties": {name: _string() for name in ("id",) + fields},
        },
    }


RESUME_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "personalInfo": {
            "type": "OBJECT",
            "properties": {name: _string() for name in models.PERSONAL_INFO_FIELDS},
        },
        "skills": _string_list(),
        "experience": _item_list(
            "company", "position", "startDate", "endDate", "location", "description"
        ),
        "education": _item_list(
            "school",
            "degree",
            "startDate",
            "endDate",
            "location",
            "description",
            "gpa",
            "cgpa",
            "coursework",
        ),
        "projects": _item_list("name", "technologies", "link", "date", "description"),
        "awards": _item_list("title", "issuer", "date", "description"),
        "certificates": _item_list("name", "issuer", "date"),
    },
}

REVIEW_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "score": {
            "type": "INTEGER",
            "description": "Overall score out of 100 based on quality and impact.",
        },
        "summary": _string("A brief, encouraging summary of the resume's quality."),
        "improvements": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": _string(),
                    "section": _string(enum=[section.value for section in models.ImprovementSection]),
                    "itemId": _string(),
                    "field": _string(),
                    "issue": _string(),
                    "suggestion": _string(),
                },
            },
        },
    },
}

KEYWORD_ANALYSIS_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "score": {
            "type": "INTEGER",
            "description": "A score from 0 to 100 indicating how well the resume matches the JD.",
        },
        "matchingKeywords": _string_list("Keywords from the JD found in the resume."),
        "missingKeywords": _string_list("Keywords from the JD NOT found in the resume."),
        "suggestions": _string_list("Actionable advice to improve the resume for this JD."),
    },
}
