from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from .models import ImprovementSection, LIST_SECTIONS, ResumeData, ResumeSource, SourceKind

REFINE_JD_CHARS = 500
SCAN_TEXT_CHARS = 20000
EXTRACT_TEXT_CHARS = 30000

_FACTS_CONSTRAINT = (
    "Keep factual data (names, dates, companies, schools, issuers) UNCHANGED.\n"
)


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _resume_json(resume: ResumeData) -> str:
    return _dump(resume.to_wire())


def _has_text(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(value.strip())


def optimize_resume_prompt(resume: ResumeData, job_description: str) -> str:
    return (
        "You are an expert Resume Writer.\n"
        "Analyze the JD and the Resume.\n"
        "Rewrite the resume to perfectly match the JD using high-impact, ATS-friendly language.\n"
        "Instructions:\n"
        '1. Align "summary" in personalInfo with the JD.\n'
        '2. Rewrite "description" fields in "experience" and "projects" to include JD keywords '
        "and action verbs.\n"
        '3. Reorder and refine "skills".\n'
        f"4. {_FACTS_CONSTRAINT}"
        "5. Keep every item's id exactly as given.\n"
        "6. Be concise.\n"
        f"Resume (JSON): {_resume_json(resume)}\n"
        f"JD: {job_description}\n"
        "Return ONLY the JSON object."
    )


def summary_prompt(resume: ResumeData, job_description: Optional[str] = None) -> str:
    wire = resume.to_wire()
    context = f"Context: Align with this JD:\n{job_description}\n" if _has_text(job_description) else ""
    return (
        "Write a professional resume summary (max 3 sentences).\n"
        f"{context}"
        f"{_FACTS_CONSTRAINT}"
        f"Profile: {_dump(wire['personalInfo'])}\n"
        f"Skills: {_dump(wire['skills'])}\n"
        f"Exp: {_dump(wire['experience'][:1])}\n"
        "Return ONLY the summary text."
    )


def refine_description_prompt(
    text: str, context: str, job_description: Optional[str] = None
) -> str:
    keywords = ""
    if _has_text(job_description):
        keywords = f"JD Keywords to use: {job_description[:REFINE_JD_CHARS]}...\n"
    return (
        "Rewrite the following resume bullet points to be ATS-friendly, result-oriented, "
        "and impactful.\n"
        f"{_FACTS_CONSTRAINT}"
        f"Context: {context}\n"
        f"{keywords}"
        f"Text: {text}\n"
        "Return ONLY the refined text."
    )


def keyword_analysis_prompt(resume: ResumeData, job_description: str) -> str:
    return (
        "Compare Resume vs JD. Output JSON.\n"
        "score: 0-100 match; matchingKeywords: JD keywords present in the resume; "
        "missingKeywords: important JD keywords absent from the resume; "
        "suggestions: actionable advice.\n"
        f"Resume: {_resume_json(resume)}\n"
        f"JD: {job_description}"
    )


def _addressable_items(resume: ResumeData) -> str:
    lines = []
    for section in LIST_SECTIONS:
        ids = [item.id for item in getattr(resume, section)]
        if ids:
            lines.append(f"- {section}: {', '.join(ids)}")
    return "\n".join(lines) if lines else "- (no list items)"


def review_prompt(resume: ResumeData, job_description: Optional[str] = None) -> str:
    has_jd = _has_text(job_description)
    target = "against the Job Description" if has_jd else "for general SEO and impact"
    sections = ", ".join(section.value for section in ImprovementSection)
    jd_block = f"Job Description:\n{job_description}\n" if has_jd else ""
    return (
        "Act as a strict Resume Auditor.\n"
        f"Review the provided resume data {target}.\n"
        "Calculate a Score (0-100) based on ATS readiness and content quality.\n"
        "If the resume is excellent (score > 90), return an EMPTY 'improvements' array and a "
        "complimentary summary.\n"
        "If improvements are needed, list ONLY critical, specific, fixable issues.\n"
        "DO NOT repeat suggestions.\n"
        'DO NOT give vague suggestions like "Add more detail". Put the full rewritten text in '
        "the 'suggestion' field.\n"
        f"Each improvement must use a section from: {sections}.\n"
        "For list sections set itemId to the id of the item being fixed. Valid ids:\n"
        f"{_addressable_items(resume)}\n"
        "For skills, the suggestion is the complete comma-separated skills list.\n"
        f"{_FACTS_CONSTRAINT}"
        f"Resume Data:\n{_resume_json(resume)}\n"
        f"{jd_block}"
    )


_SCAN_INSTRUCTION = (
    "Act as a strict Resume Auditor. Review the provided {what}. "
    "1. Calculate a Score (0-100). 2. Provide a 1-sentence summary. "
    "3. List 3-5 critical improvements."
)


def scan_prompt(source: ResumeSource) -> str:
    if source.kind == SourceKind.pdf:
        return _SCAN_INSTRUCTION.format(what="PDF resume")
    if source.kind == SourceKind.text:
        return (
            f"{_SCAN_INSTRUCTION.format(what='raw resume text')}\n\n"
            f"Text:\n{source.value[:SCAN_TEXT_CHARS]}"
        )
    raise ValueError(f"scan does not support {source.kind.value} sources")


@dataclass
class ExtractionPrompt:
    instruction: str
    use_search: bool = False


_EXTRACT_BASE = (
    "You are a Data Extractor.\n"
    "Extract resume data from the input.\n"
    "Map it to the JSON schema provided.\n"
    "Rules:\n"
    "- Infer missing fields logically.\n"
    "- If date is just a year, assume Jan 1st.\n"
    "- Be precise with Company Names and Job Titles.\n"
    f"- {_FACTS_CONSTRAINT}"
)


def extraction_prompt(source: ResumeSource) -> ExtractionPrompt:
    if source.kind == SourceKind.pdf:
        return ExtractionPrompt(instruction=_EXTRACT_BASE)
    if source.kind == SourceKind.text:
        return ExtractionPrompt(
            instruction=f"{_EXTRACT_BASE}\nText:\n{source.value[:EXTRACT_TEXT_CHARS]}"
        )
    instruction = (
        "I need to construct a resume from the public LinkedIn profile at this URL: "
        f"{source.value}.\n"
        "Perform a Google Search to find the LinkedIn profile details for this person.\n"
        "Look for:\n"
        "- Full Name and Headline (use as summary if needed)\n"
        "- Experience (Job titles, Companies, Dates, Descriptions)\n"
        "- Education (School, Degree, Dates)\n"
        "- Skills\n"
        "- Projects or Certifications if available.\n"
        "Consolidate the search results into a valid JSON object with keys personalInfo "
        "(fullName, email, phone, location, linkedin, website, summary), skills, experience, "
        "education, projects, awards, certificates.\n"
        "Estimate start/end years if specific months are not found.\n"
        f"{_FACTS_CONSTRAINT}"
        "Do not include markdown formatting in the response, just the JSON."
    )
    return ExtractionPrompt(instruction=instruction, use_search=True)
