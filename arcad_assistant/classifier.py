"""Keyword classifier that routes a question to a handling category."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .catalog import PRODUCT_CATALOG
from .constants import INTEGRATION_TERMS, LANGUAGE_MAP, TECHNICAL_TERMS, LanguageInfo

PRODUCT_SPECIFIC = "product-specific"
TECHNICAL = "technical"
INTEGRATION = "integration"
LANGUAGE = "language"
GENERAL = "general"

# Longest names first so "ARCAD Transformer DB" wins over "ARCAD-Transformer".
_PRODUCT_NAMES = sorted(PRODUCT_CATALOG.keys(), key=len, reverse=True)


@dataclass(frozen=True)
class QuestionCategory:
    """Routing category with the entity that triggered it, if any."""
    type: str
    product: Optional[str] = None
    language: Optional[str] = None


def classify(question: str) -> QuestionCategory:
    """Purpose: Categorize a question by case-insensitive keyword matching.
    Inputs/Outputs: Input is the raw question; output is a QuestionCategory.
    Side Effects / State: None; pure function over static tables.
    Dependencies: Uses LANGUAGE_MAP, PRODUCT_CATALOG, TECHNICAL_TERMS, INTEGRATION_TERMS.
    Failure Modes: None; any string (including "") yields a category.
    If Removed: The agent cannot pick a context URL or the language rewrite path.
    Testing Notes: Check priority order language > product > technical > integration.
    """
    # First match wins; the order of checks is the routing priority.
    lowered = (question or "").lower()

    for keyword in LANGUAGE_MAP:
        if keyword in lowered:
            return QuestionCategory(type=LANGUAGE, language=keyword)

    for name in _PRODUCT_NAMES:
        if name.lower() in lowered:
            return QuestionCategory(type=PRODUCT_SPECIFIC, product=name)

    if any(term in lowered for term in TECHNICAL_TERMS):
        return QuestionCategory(type=TECHNICAL)

    if any(term in lowered for term in INTEGRATION_TERMS):
        return QuestionCategory(type=INTEGRATION)

    return QuestionCategory(type=GENERAL)


def language_info(keyword: Optional[str]) -> Optional[LanguageInfo]:
    if not keyword:
        return None
    return LANGUAGE_MAP.get(keyword.lower())


def build_language_prompt(question: str, info: LanguageInfo) -> str:
    """Rewrite a locale question into a prompt focused on regional availability."""
    return (
        f"The user is asking about ARCAD Software resources for {info.name}. "
        f"Using the context, explain which ARCAD products, documentation, and support are "
        f"available for {info.name}-speaking customers or that region, and where to find them. "
        f'Original question: "{question.strip()}"'
    )
