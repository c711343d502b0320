"""Test fixtures for CV Screener."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import orjson
import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

_PROVIDER_ENV = ("GOOGLE_AI_API_KEY", "OPENAI_API_KEY", "OPENROUTER_API_KEY", "CVS_CONFIG")


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate settings, credentials and the index location between tests."""
    from cv_screener.core.config import get_settings

    for name in _PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CVS_INDEX_PATH", str(tmp_path / "vector_store.json"))
    monkeypatch.setenv("CVS_CORPUS_PATH", str(tmp_path / "cv_data.json"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _record(name: str, email: str, technical: list[str], summary: str) -> dict[str, Any]:
    return {
        "personalInfo": {"name": name, "email": email, "phone": "+34 600 000 000"},
        "summary": summary,
        "experience": [
            {
                "title": f"Role {index}",
                "company": f"Company {index}",
                "startDate": f"20{10 + index}",
                "endDate": f"20{11 + index}",
                "description": "Delivered features end to end, mentored colleagues and "
                "kept services healthy in production. " * 3,
            }
            for index in range(4)
        ],
        "education": {
            "degree": "BSc Computer Science",
            "university": "Universidad Politécnica",
            "startYear": 2006,
            "endYear": 2010,
        },
        "skills": {
            "technical": technical,
            "soft": ["Teamwork", "Communication", "Leadership", "Patience"],
        },
        "languages": [
            {"name": "Spanish", "level": "Native"},
            {"name": "English", "level": "C1"},
            {"name": "French", "level": "B1"},
            {"name": "German", "level": "A2"},
        ],
    }


@pytest.fixture(scope="session")
def resume_records() -> list[dict[str, Any]]:
    return [
        _record("Ana García", "ana@example.com", ["Python", "Django", "PostgreSQL"], "Backend developer."),
        _record("Luis Pérez", "luis@example.com", ["Java", "Spring", "Maven"], "Enterprise engineer."),
        _record(
            "Marta Ruiz",
            "marta@example.com",
            ["Figma", "Sketch", "Illustrator", "Photoshop", "InDesign", "Blender", "Kubernetes"],
            "Product designer.",
        ),
    ]


@pytest.fixture
def corpus_file(tmp_path: Path, resume_records: list[dict[str, Any]]) -> Path:
    path = tmp_path / "cv_data.json"
    path.write_bytes(orjson.dumps(resume_records))
    return path
