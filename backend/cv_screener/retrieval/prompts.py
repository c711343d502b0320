"""Prompt construction for CV question answering."""

from __future__ import annotations

import re
from enum import Enum
from typing import Sequence

from cv_screener.retrieval.similarity import RetrievalResult

SYSTEM_PROMPT = """You are an HR assistant specialised in CV screening. Answer questions ONLY from the CV passages provided below.

IMPORTANT INSTRUCTIONS:
1. Use ONLY the information in the supplied CV passages.
2. If the passages do not contain the answer, say clearly that the information is not available.
3. Mention candidates by name whenever it is relevant.
4. Review EVERY supplied passage before answering; each one belongs to a different candidate.
5. For questions about skills, experience or education, list all matching candidates, not just the first.

RESPONSE FORMAT:
- Answer clearly and professionally.
- Give structured answers when listing several candidates.
- Never invent information that is not in the CVs."""

NO_CONTEXT = "No relevant information was found in the CVs for this question."

FALLBACK_ANSWER = "Sorry, there was an error processing your question. Please try again."

_BROAD_TERMS = (
    "who",
    "which",
    "find",
    "list",
    "all",
    "any",
    "candidates",
    "developer",
    "engineer",
    "designer",
    "manager",
    "analyst",
    "scientist",
    "python",
    "java",
    "javascript",
    "react",
    "sql",
    "aws",
    "docker",
    "skills",
    "experience",
)
_WORD_RE = re.compile(r"\w+")


class QueryKind(str, Enum):
    BROAD = "broad"
    SPECIFIC = "specific"


def classify_query(query: str) -> QueryKind:
    """Keyword heuristic: skill, role, and who/which/find style questions are broad."""
    words = set(_WORD_RE.findall(query.lower()))
    if words.intersection(_BROAD_TERMS):
        return QueryKind.BROAD
    return QueryKind.SPECIFIC


def build_context(results: Sequence[RetrievalResult]) -> str:
    if not results:
        return NO_CONTEXT
    blocks = ["CV INFORMATION:", ""]
    for index, result in enumerate(results, start=1):
        name = result.metadata.get("display_name", "Unknown")
        blocks.append(f"CV {index} ({name}):\n{result.text}\n")
    return "\n".join(blocks)


def build_user_prompt(query: str, results: Sequence[RetrievalResult]) -> str:
    return (
        f"CONTEXT:\n{build_context(results)}\n\n"
        f"USER QUESTION:\n{query}\n\n"
        "Answer the question using ONLY the information above. "
        "If it is not sufficient, say so clearly."
    )


def build_prompt(query: str, results: Sequence[RetrievalResult]) -> str:
    """System framing followed by the grouped context and the question."""
    return f"{SYSTEM_PROMPT}\n\n{build_user_prompt(query, results)}"


__all__ = [
    "SYSTEM_PROMPT",
    "NO_CONTEXT",
    "FALLBACK_ANSWER",
    "QueryKind",
    "classify_query",
    "build_context",
    "build_user_prompt",
    "build_prompt",
]
