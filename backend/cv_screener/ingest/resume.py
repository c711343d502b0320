"""Résumé records and their compact textual representation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

import orjson
from pydantic import BaseModel, ConfigDict, Field

from cv_screener.core.logging import get_logger
from cv_screener.ingest.types import SourceDocument

logger = get_logger(__name__)

MAX_EXPERIENCE = 3
MAX_TECHNICAL_SKILLS = 6
MAX_SOFT_SKILLS = 3
MAX_LANGUAGES = 3
DESCRIPTION_PREVIEW_CHARS = 150


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PersonalInfo(_Record):
    name: str
    email: str = ""


class Experience(_Record):
    title: str = ""
    company: str = ""
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")
    description: str = ""

    @property
    def period(self) -> str:
        return f"{self.start_date} - {self.end_date}"


class Education(_Record):
    degree: str = ""
    university: str = ""
    start_year: str | int = Field(default="", alias="startYear")
    end_year: str | int = Field(default="", alias="endYear")


class Skills(_Record):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)


class Language(_Record):
    name: str
    level: str = ""


class ResumeRecord(_Record):
    """One entry of the generator's ``cv_data.json``."""

    personal_info: PersonalInfo = Field(alias="personalInfo")
    summary: str = ""
    experience: list[Experience] = Field(default_factory=list)
    education: Education = Field(default_factory=Education)
    skills: Skills = Field(default_factory=Skills)
    languages: list[Language] = Field(default_factory=list)


def render_resume_text(record: ResumeRecord) -> str:
    """Build the compact text that gets chunked and embedded."""
    lines = [
        f"Name: {record.personal_info.name}",
        f"Email: {record.personal_info.email}",
        f"Summary: {record.summary}",
        "",
        "Experience:",
    ]
    for index, exp in enumerate(record.experience[:MAX_EXPERIENCE], start=1):
        lines.append(f"{index}. {exp.title} at {exp.company}")
        lines.append(f"   {exp.period}")
        lines.append(f"   {exp.description[:DESCRIPTION_PREVIEW_CHARS]}...")
        lines.append("")

    education = record.education
    lines.append(f"Education: {education.degree} from {education.university}")
    lines.append(f"Period: {education.start_year} - {education.end_year}")
    lines.append("")
    lines.append(f"Technical Skills: {', '.join(record.skills.technical[:MAX_TECHNICAL_SKILLS])}")
    lines.append(f"Soft Skills: {', '.join(record.skills.soft[:MAX_SOFT_SKILLS])}")
    lines.append("")
    languages = ", ".join(f"{lang.name} ({lang.level})" for lang in record.languages[:MAX_LANGUAGES])
    lines.append(f"Languages: {languages}")
    return "\n".join(lines) + "\n"


def summarize_profile(record: ResumeRecord) -> dict[str, Any]:
    """Flattened structured summary kept alongside the rendered text."""
    return {
        "email": record.personal_info.email,
        "summary": record.summary,
        "experience": [
            {"title": exp.title, "company": exp.company, "period": exp.period}
            for exp in record.experience[:MAX_EXPERIENCE]
        ],
        "education": {
            "degree": record.education.degree,
            "university": record.education.university,
        },
        "skills": {
            "technical": record.skills.technical[:MAX_TECHNICAL_SKILLS],
            "soft": record.skills.soft[:MAX_SOFT_SKILLS],
        },
        "languages": [lang.name for lang in record.languages[:MAX_LANGUAGES]],
    }


def to_source_documents(raw_records: Iterable[dict[str, Any]]) -> list[SourceDocument]:
    """Validate raw records and assign document ids 1..N in input order."""
    documents: list[SourceDocument] = []
    for document_id, raw in enumerate(raw_records, start=1):
        record = ResumeRecord.model_validate(raw)
        documents.append(
            SourceDocument(
                document_id=document_id,
                display_name=record.personal_info.name,
                text=render_resume_text(record),
                profile=summarize_profile(record),
            )
        )
    return documents


def load_corpus(path: Path) -> list[SourceDocument]:
    """Read the generator's JSON corpus from disk."""
    raw = orjson.loads(path.expanduser().read_bytes())
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON list of résumé records")
    documents = to_source_documents(raw)
    logger.info("Loaded %s résumés from %s", len(documents), path)
    return documents


__all__ = [
    "ResumeRecord",
    "render_resume_text",
    "summarize_profile",
    "to_source_documents",
    "load_corpus",
]
