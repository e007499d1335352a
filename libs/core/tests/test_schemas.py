from __future__ import annotations

import json
from pathlib import Path

import pytest

from libs.core import schemas
from libs.core.models import LIST_SECTIONS, PERSONAL_INFO_FIELDS

jsonschema = pytest.importorskip("jsonschema")


def test_export_schemas_writes_valid_json_schema(tmp_path: Path) -> None:
    written = schemas.export_schemas(tmp_path / "schemas")

    assert {path.stem for path in written} == set(schemas.SCHEMA_TARGETS)
    for path in written:
        schema = json.loads(path.read_text(encoding="utf-8"))
        jsonschema.Draft202012Validator.check_schema(schema)


def test_exported_resume_schema_validates_wire_payload(tmp_path: Path) -> None:
    from libs.core.models import sample_resume

    schemas.export_schemas(tmp_path)
    schema = json.loads((tmp_path / "ResumeData.json").read_text(encoding="utf-8"))
    jsonschema.validate(sample_resume().to_wire(), schema)
    assert "personalInfo" in schema["properties"]


def test_resume_response_schema_covers_every_section() -> None:
    properties = schemas.RESUME_RESPONSE_SCHEMA["properties"]
    assert set(properties) == {"personalInfo", "skills", *LIST_SECTIONS}
    assert tuple(properties["personalInfo"]["properties"]) == PERSONAL_INFO_FIELDS
    for section in LIST_SECTIONS:
        assert "id" in properties[section]["items"]["properties"]


def test_review_schema_restricts_sections() -> None:
    item = schemas.REVIEW_RESPONSE_SCHEMA["properties"]["improvements"]["items"]
    assert item["properties"]["section"]["enum"] == [
        "personalInfo",
        "skills",
        "experience",
        "education",
        "projects",
        "awards",
        "certificates",
    ]
