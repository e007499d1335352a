from __future__ import annotations

from typing import Optional

from libs.core import logging as core_logging, prompts, schemas
from libs.core.document_store import ProjectStore, create_project_store
from libs.core.llm_provider import Attachment
from libs.core.models import (
    KeywordAnalysis,
    ResumeData,
    ResumeSource,
    ReviewResult,
    SourceKind,
    UserProfile,
)

from .config import StudioSettings
from .context import is_missing_value
from .errors import StudioError
from .gateway import ModelGateway
from .validation import (
    parse_keyword_analysis_response,
    parse_resume_response,
    parse_review_response,
)

LOGGER = core_logging.get_logger("studio")

_OPTIMIZE_TEMPERATURE = 0.3
_REVIEW_TEMPERATURE = 0.4
_EXTRACT_TEMPERATURE = 0.1
_PDF_MIME_TYPE = "application/pdf"


def create_gateway_from_env() -> ModelGateway:
    return ModelGateway(StudioSettings.from_env())


def create_store_from_env(settings: Optional[StudioSettings] = None) -> ProjectStore:
    settings = settings or StudioSettings.from_env()
    return create_project_store(
        settings.store_backend,
        database_url=settings.database_url,
        local_store_dir=settings.local_store_dir,
        redis_url=settings.redis_url,
    )


def store_for_user(user: UserProfile, settings: StudioSettings) -> ProjectStore:
    """Guests always keep their projects on the local device."""
    if user.is_guest:
        return create_project_store("local", local_store_dir=settings.local_store_dir)
    return create_store_from_env(settings)


def _require_job_description(job_description: Optional[str]) -> str:
    if is_missing_value(job_description):
        raise StudioError("job_description_required")
    return job_description.strip()


def _pdf_attachment(source: ResumeSource) -> Attachment:
    if is_missing_value(source.value):
        raise StudioError("source_value_required")
    return Attachment(mime_type=_PDF_MIME_TYPE, data=source.value.strip())


def optimize_resume(
    resume: ResumeData, job_description: str, gateway: ModelGateway
) -> ResumeData:
    jd = _require_job_description(job_description)
    raw = gateway.generate_json(
        prompts.optimize_resume_prompt(resume, jd),
        schemas.RESUME_RESPONSE_SCHEMA,
        temperature=_OPTIMIZE_TEMPERATURE,
    )
    optimized = parse_resume_response(raw)
    LOGGER.info(
        "resume_optimized",
        experience=len(optimized.experience),
        projects=len(optimized.projects),
        skills=len(optimized.skills),
    )
    return optimized


def generate_summary(
    resume: ResumeData, gateway: ModelGateway, job_description: Optional[str] = None
) -> str:
    return gateway.generate_text(
        prompts.summary_prompt(resume, job_description),
        fallback=resume.personal_info.summary,
    )


def refine_description(
    text: str,
    context: str,
    gateway: ModelGateway,
    job_description: Optional[str] = None,
) -> str:
    return gateway.generate_text(
        prompts.refine_description_prompt(text, context, job_description),
        fallback=text,
    )


def analyze_keywords(
    resume: ResumeData, job_description: str, gateway: ModelGateway
) -> KeywordAnalysis:
    jd = _require_job_description(job_description)
    raw = gateway.generate_json(
        prompts.keyword_analysis_prompt(resume, jd),
        schemas.KEYWORD_ANALYSIS_RESPONSE_SCHEMA,
    )
    return parse_keyword_analysis_response(raw)


def review_resume(
    resume: ResumeData, gateway: ModelGateway, job_description: Optional[str] = None
) -> ReviewResult:
    raw = gateway.generate_json(
        prompts.review_prompt(resume, job_description),
        schemas.REVIEW_RESPONSE_SCHEMA,
        temperature=_REVIEW_TEMPERATURE,
    )
    review = parse_review_response(raw)
    LOGGER.info(
        "resume_reviewed",
        score=review.score,
        improvements=len(review.improvements),
        with_job_description=not is_missing_value(job_description),
    )
    return review


def scan_resume(source: ResumeSource, gateway: ModelGateway) -> ReviewResult:
    if source.kind == SourceKind.url:
        raise StudioError("scan_source_unsupported:url")
    attachment = _pdf_attachment(source) if source.kind == SourceKind.pdf else None
    if attachment is None and is_missing_value(source.value):
        raise StudioError("source_value_required")
    raw = gateway.generate_json(
        prompts.scan_prompt(source),
        schemas.REVIEW_RESPONSE_SCHEMA,
        attachment=attachment,
    )
    return parse_review_response(raw)


def extract_resume(source: ResumeSource, gateway: ModelGateway) -> ResumeData:
    prompt = prompts.extraction_prompt(source)
    if source.kind == SourceKind.pdf:
        raw = gateway.generate_json(
            prompt.instruction,
            schemas.RESUME_RESPONSE_SCHEMA,
            temperature=_EXTRACT_TEMPERATURE,
            attachment=_pdf_attachment(source),
        )
    elif is_missing_value(source.value):
        raise StudioError("source_value_required")
    elif prompt.use_search:
        # Search grounded output is free text; the schema is not enforced upstream.
        raw = gateway.generate_search(prompt.instruction, temperature=_EXTRACT_TEMPERATURE)
    else:
        raw = gateway.generate_json(
            prompt.instruction,
            schemas.RESUME_RESPONSE_SCHEMA,
            temperature=_EXTRACT_TEMPERATURE,
        )
    extracted = parse_resume_response(raw)
    LOGGER.info("resume_extracted", source_kind=source.kind.value)
    return extracted
