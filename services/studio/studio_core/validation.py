from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from pydantic import ValidationError

from libs.core import logging as core_logging
from libs.core.models import (
    KeywordAnalysis,
    LIST_SECTIONS,
    PERSONAL_INFO_FIELDS,
    ResumeData,
    ReviewResult,
    generate_item_id,
)

from .context import is_missing_value
from .errors import MalformedOutputError

LOGGER = core_logging.get_logger("studio")

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def clean_json_text(text: str) -> str:
    if not text:
        return ""
    cleaned = _FENCE_RE.sub("", text)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end != -1 and end > start:
        cleaned = cleaned[start : end + 1]
    return cleaned.strip()


def parse_json_object(json_text: str) -> Dict[str, Any]:
    if not json_text:
        raise MalformedOutputError("empty_json")
    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(f"invalid_json:{exc.msg}") from exc
    if not isinstance(payload, dict):
        raise MalformedOutputError("not_an_object")
    return payload


def repair_resume_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    repaired = dict(payload)
    repairs: List[str] = []

    skills = repaired.get("skills")
    if not isinstance(skills, list):
        repairs.append("skills")
        skills = []
    kept = [skill for skill in skills if isinstance(skill, str)]
    if len(kept) != len(skills):
        repairs.append("skills:dropped_non_strings")
    repaired["skills"] = kept

    personal = repaired.get("personalInfo")
    if not isinstance(personal, dict):
        repairs.append("personalInfo")
        personal = {}
    personal = dict(personal)
    for key in PERSONAL_INFO_FIELDS:
        value = personal.get(key)
        if value is None:
            repairs.append(f"personalInfo.{key}")
            personal[key] = ""
        elif not isinstance(value, str):
            personal[key] = str(value)
    repaired["personalInfo"] = personal

    for section in LIST_SECTIONS:
        items = repaired.get(section)
        if not isinstance(items, list):
            repairs.append(section)
            items = []
        seen: set[str] = set()
        fixed_items: List[Dict[str, Any]] = []
        for idx, item in enumerate(items):
            if not isinstance(item, dict):
                repairs.append(f"{section}[{idx}]:dropped")
                continue
            item = _coerce_item_fields(item)
            item_id = item.get("id")
            item_id = str(item_id).strip() if not is_missing_value(item_id) else ""
            if not item_id or item_id in seen:
                item_id = _unique_id(seen)
                repairs.append(f"{section}[{idx}].id")
            item["id"] = item_id
            seen.add(item_id)
            fixed_items.append(item)
        repaired[section] = fixed_items

    if repairs:
        LOGGER.info("resume_payload_repaired", repairs=repairs)
    return repaired


def _coerce_item_fields(item: Dict[str, Any]) -> Dict[str, Any]:
    coerced: Dict[str, Any] = {}
    for key, value in item.items():
        if value is None:
            continue
        if isinstance(value, list):
            value = "\n".join(str(entry) for entry in value if not is_missing_value(entry))
        elif not isinstance(value, str):
            value = str(value)
        coerced[key] = value
    return coerced


def _unique_id(taken: set[str]) -> str:
    candidate = generate_item_id()
    while candidate in taken:
        candidate = generate_item_id()
    return candidate


def _clamp_score(payload: Dict[str, Any], kind: str) -> None:
    score = payload.get("score")
    try:
        numeric = int(round(float(score)))
    except (TypeError, ValueError, OverflowError):
        LOGGER.warning("score_repaired", kind=kind, raw_score=repr(score), score=0)
        numeric = 0
    clamped = max(0, min(100, numeric))
    if clamped != numeric:
        LOGGER.info("score_clamped", kind=kind, raw_score=numeric, score=clamped)
    payload["score"] = clamped


def _coerce_string_lists(payload: Dict[str, Any], keys: tuple[str, ...]) -> None:
    for key in keys:
        values = payload.get(key)
        if not isinstance(values, list):
            values = []
        payload[key] = [str(value) for value in values if not is_missing_value(value)]


def _validate(model: Any, payload: Dict[str, Any]) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise MalformedOutputError(f"schema_mismatch:{exc.error_count()}_errors") from exc


def parse_resume_response(text: str) -> ResumeData:
    payload = parse_json_object(clean_json_text(text))
    return _validate(ResumeData, repair_resume_payload(payload))


def parse_review_response(text: str) -> ReviewResult:
    payload = parse_json_object(clean_json_text(text))
    _clamp_score(payload, "review")
    if not isinstance(payload.get("summary"), str):
        payload["summary"] = ""
    improvements = payload.get("improvements")
    if not isinstance(improvements, list):
        improvements = []
    seen: set[str] = set()
    fixed: List[Dict[str, Any]] = []
    for item in improvements:
        if not isinstance(item, dict):
            continue
        section = item.get("section")
        if is_missing_value(section):
            continue
        item = dict(item)
        if is_missing_value(item.get("field")):
            if section != "skills":
                continue
            item["field"] = "skills"
        if is_missing_value(item.get("itemId")):
            item["itemId"] = None
        improvement_id = item.get("id")
        improvement_id = str(improvement_id) if not is_missing_value(improvement_id) else ""
        if not improvement_id or improvement_id in seen:
            improvement_id = _unique_id(seen)
        item["id"] = improvement_id
        seen.add(improvement_id)
        for key in ("issue", "suggestion"):
            if not isinstance(item.get(key), str):
                item[key] = "" if item.get(key) is None else str(item[key])
        fixed.append(item)
    payload["improvements"] = fixed
    return _validate(ReviewResult, payload)


def parse_keyword_analysis_response(text: str) -> KeywordAnalysis:
    payload = parse_json_object(clean_json_text(text))
    _clamp_score(payload, "keyword_analysis")
    _coerce_string_lists(payload, ("matchingKeywords", "missingKeywords", "suggestions"))
    return _validate(KeywordAnalysis, payload)
