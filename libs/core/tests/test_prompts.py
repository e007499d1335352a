from __future__ import annotations

import pytest

from libs.core import prompts
from libs.core.models import ResumeData, ResumeSource, SourceKind, sample_resume


def test_prompts_are_deterministic() -> None:
    resume = sample_resume()
    assert prompts.optimize_resume_prompt(resume, "Go engineer") == prompts.optimize_resume_prompt(
        resume.model_copy(deep=True), "Go engineer"
    )
    assert prompts.review_prompt(resume) == prompts.review_prompt(resume)


def test_resume_prompts_carry_factual_constraint() -> None:
    resume = sample_resume()
    built = [
        prompts.optimize_resume_prompt(resume, "jd"),
        prompts.summary_prompt(resume),
        prompts.refine_description_prompt("• did things", "Engineer from Acme"),
        prompts.review_prompt(resume, "jd"),
        prompts.extraction_prompt(ResumeSource(kind=SourceKind.text, value="cv")).instruction,
    ]
    for prompt in built:
        assert "UNCHANGED" in prompt


def test_optimize_prompt_embeds_resume_and_jd() -> None:
    prompt = prompts.optimize_resume_prompt(sample_resume(), "Senior Go engineer, Kubernetes")
    assert "Alex Developer" in prompt
    assert "Senior Go engineer, Kubernetes" in prompt
    assert '"fullName"' in prompt


def test_summary_prompt_uses_most_recent_experience_only() -> None:
    prompt = prompts.summary_prompt(sample_resume())
    assert "Tech Solutions Inc." in prompt
    assert "WebCorp" not in prompt
    assert "Align with this JD" not in prompt
    assert "Align with this JD" in prompts.summary_prompt(sample_resume(), "Data role")


def test_refine_prompt_truncates_job_description() -> None:
    jd = "k" * 600 + "TAIL"
    prompt = prompts.refine_description_prompt("text", "ctx", jd)
    assert "k" * prompts.REFINE_JD_CHARS in prompt
    assert "k" * (prompts.REFINE_JD_CHARS + 1) not in prompt
    assert "TAIL" not in prompt


def test_review_prompt_lists_addressable_ids() -> None:
    prompt = prompts.review_prompt(sample_resume())
    assert "- experience: exp-1, exp-2" in prompt
    assert "- certificates: cert-1" in prompt
    assert "general SEO" in prompt

    empty = prompts.review_prompt(ResumeData())
    assert "(no list items)" in empty


def test_scan_prompt_truncates_text_and_rejects_url() -> None:
    source = ResumeSource(kind=SourceKind.text, value="a" * 25000)
    prompt = prompts.scan_prompt(source)
    assert "a" * prompts.SCAN_TEXT_CHARS in prompt
    assert "a" * (prompts.SCAN_TEXT_CHARS + 1) not in prompt

    assert "PDF resume" in prompts.scan_prompt(ResumeSource(kind=SourceKind.pdf, value="JVBE"))
    with pytest.raises(ValueError):
        prompts.scan_prompt(ResumeSource(kind=SourceKind.url, value="linkedin.com/in/x"))


def test_extraction_prompt_by_source_kind() -> None:
    text = prompts.extraction_prompt(ResumeSource(kind=SourceKind.text, value="b" * 40000))
    assert not text.use_search
    assert "b" * prompts.EXTRACT_TEXT_CHARS in text.instruction
    assert "b" * (prompts.EXTRACT_TEXT_CHARS + 1) not in text.instruction

    url = prompts.extraction_prompt(
        ResumeSource(kind=SourceKind.url, value="https://linkedin.com/in/jordan")
    )
    assert url.use_search
    assert "https://linkedin.com/in/jordan" in url.instruction

    pdf = prompts.extraction_prompt(ResumeSource(kind=SourceKind.pdf, value="JVBE"))
    assert not pdf.use_search
    assert "JVBE" not in pdf.instruction
