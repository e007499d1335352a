from __future__ import annotations

from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from libs.core import logging as core_logging
from libs.core.models import (
    KeywordAnalysis,
    ResumeData,
    ResumeImprovement,
    ResumeSource,
    ReviewResult,
)
from studio_core import (
    StudioError,
    analyze_keywords,
    create_gateway_from_env,
    extract_resume,
    generate_summary,
    optimize_resume,
    refine_description,
    review_resume,
    scan_resume,
)
from studio_core.links import validate_resume_links
from studio_core.merge import apply_improvement


core_logging.configure_logging("studio")
LOGGER = core_logging.get_logger("studio")

GATEWAY = create_gateway_from_env()


class OptimizeRequest(BaseModel):
    resume: ResumeData
    job_description: str


class SummaryRequest(BaseModel):
    resume: ResumeData
    job_description: Optional[str] = None


class SummaryResponse(BaseModel):
    summary: str


class RefineRequest(BaseModel):
    text: str
    context: str = ""
    job_description: Optional[str] = None


class RefineResponse(BaseModel):
    text: str


class AnalyzeRequest(BaseModel):
    resume: ResumeData
    job_description: str


class ReviewRequest(BaseModel):
    resume: ResumeData
    job_description: Optional[str] = None


class ApplyImprovementRequest(BaseModel):
    resume: ResumeData
    improvement: ResumeImprovement


class ValidateLinksRequest(BaseModel):
    resume: ResumeData


class ValidateLinksResponse(BaseModel):
    errors: Dict[str, str] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    model: str
    credentials: bool


app = FastAPI(title="Resume Studio Service")
app.state.gateway = GATEWAY


def _http_error(error: StudioError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.detail)


@app.get("/healthz", response_model=HealthResponse)
def healthz() -> HealthResponse:
    gateway = app.state.gateway
    return HealthResponse(
        status="ok",
        model=gateway.settings.model,
        credentials=gateway.settings.has_credentials,
    )


@app.post("/optimize", response_model=ResumeData, response_model_by_alias=True)
def optimize_endpoint(request: OptimizeRequest) -> ResumeData:
    try:
        return optimize_resume(request.resume, request.job_description, app.state.gateway)
    except StudioError as exc:
        raise _http_error(exc) from exc


@app.post("/summary", response_model=SummaryResponse)
def summary_endpoint(request: SummaryRequest) -> SummaryResponse:
    try:
        summary = generate_summary(request.resume, app.state.gateway, request.job_description)
    except StudioError as exc:
        raise _http_error(exc) from exc
    return SummaryResponse(summary=summary)


@app.post("/refine", response_model=RefineResponse)
def refine_endpoint(request: RefineRequest) -> RefineResponse:
    try:
        text = refine_description(
            request.text, request.context, app.state.gateway, request.job_description
        )
    except StudioError as exc:
        raise _http_error(exc) from exc
    return RefineResponse(text=text)


@app.post("/analyze", response_model=KeywordAnalysis, response_model_by_alias=True)
def analyze_endpoint(request: AnalyzeRequest) -> KeywordAnalysis:
    try:
        return analyze_keywords(request.resume, request.job_description, app.state.gateway)
    except StudioError as exc:
        raise _http_error(exc) from exc


@app.post("/review", response_model=ReviewResult, response_model_by_alias=True)
def review_endpoint(request: ReviewRequest) -> ReviewResult:
    try:
        return review_resume(request.resume, app.state.gateway, request.job_description)
    except StudioError as exc:
        raise _http_error(exc) from exc


@app.post("/scan", response_model=ReviewResult, response_model_by_alias=True)
def scan_endpoint(source: ResumeSource) -> ReviewResult:
    try:
        return scan_resume(source, app.state.gateway)
    except StudioError as exc:
        raise _http_error(exc) from exc


@app.post("/extract", response_model=ResumeData, response_model_by_alias=True)
def extract_endpoint(source: ResumeSource) -> ResumeData:
    try:
        return extract_resume(source, app.state.gateway)
    except StudioError as exc:
        raise _http_error(exc) from exc


@app.post("/apply-improvement", response_model=ResumeData, response_model_by_alias=True)
def apply_improvement_endpoint(request: ApplyImprovementRequest) -> ResumeData:
    try:
        return apply_improvement(request.resume, request.improvement)
    except StudioError as exc:
        raise _http_error(exc) from exc


@app.post("/validate-links", response_model=ValidateLinksResponse)
def validate_links_endpoint(request: ValidateLinksRequest) -> ValidateLinksResponse:
    return ValidateLinksResponse(errors=validate_resume_links(request.resume))
