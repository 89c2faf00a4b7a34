"""Static routing tables, URLs, and limits shared by the question pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

PRODUCTS_URL = "https://www.arcadsoftware.com/arcad/products/"
GITHUB_URL = "https://github.com/ARCAD-Software"
FALLBACK_CONTEXT_URL = GITHUB_URL

MIN_CONTEXT_LENGTH = 200
MAX_RETRIES = 3
INITIAL_BACKOFF_MS = 1000
FETCH_TIMEOUT_SEC = 10.0
CONTEXT_MAX_LENGTH = 8000
CONTENT_CACHE_TTL_SEC = 5 * 60

TECHNICAL_TERMS = [
    "how to",
    "implement",
    "configure",
    "setup",
    "install",
    "deploy",
    "documentation",
    "guide",
    "tutorial",
    "example",
    "requirement",
]

INTEGRATION_TERMS = [
    "integrate",
    "connection",
    "workflow",
    "pipeline",
    "devops",
    "jenkins",
    "github",
    "gitlab",
    "ci/cd",
    "automation",
]

PRODUCT_QUERY_TERMS = [
    "product",
    "what is",
    "tell me about",
    "how many",
    "list",
    "show me",
]

PRODUCT_LIST_TERMS = [
    "list products",
    "show products",
    "what products",
    "which products",
]

PRODUCT_COUNT_TERMS = [
    "how many",
    "list",
    "show me",
]

PRODUCT_COMPARISON_TERMS = [
    "compare",
    "difference between",
    "vs",
    "versus",
]

SIMPLE_GREETINGS = ["hi", "hey", "hello", "yo", "hola", "greetings", "howdy", "hai"]

DEFAULT_PROMPT_SUGGESTIONS = [
    "How can ARCAD-Skipper help analyze my IBM i applications?",
    "What are ARCAD's DevOps solutions for IBM i?",
    "Compare ARCAD-Transformer vs ARCAD Transformer DB",
    "How to integrate ARCAD products with Jenkins pipeline?",
    "Show me ARCAD's database modernization solutions",
    "Which products does ARCAD offer?",
]


@dataclass(frozen=True)
class LanguageInfo:
    """Display name and localized landing page for a language keyword."""
    name: str
    url: str


FRENCH = LanguageInfo("French", "https://www.arcadsoftware.com/fr/")
INDIA = LanguageInfo("India", "https://www.arcadsoftware.com/about/contact-us/")
ENGLISH = LanguageInfo("English", PRODUCTS_URL)

# Keys are matched as lowercase substrings; misspellings map to the same entry.
LANGUAGE_MAP: Dict[str, LanguageInfo] = {
    "french": FRENCH,
    "français": FRENCH,
    "frace": FRENCH,
    "spanish": LanguageInfo("Spanish", "https://www.arcadsoftware.com/es/"),
    "german": LanguageInfo("German", "https://www.arcadsoftware.com/de/"),
    "italian": LanguageInfo("Italian", "https://www.arcadsoftware.com/it/"),
    "japanese": LanguageInfo("Japanese", "https://www.arcadsoftware.com/ja/"),
    # No localized site; the contact page is the closest match.
    "india": INDIA,
    "idnia": INDIA,
    "france": FRENCH,
    "english": ENGLISH,
    "neng": ENGLISH,
}
