import re
import unicodedata


def normalize_text(text: str) -> str:
    """Purpose: Normalize free-form text for phrase matching in the pipeline.
    Inputs/Outputs: Input is a raw string; output is lowercase text with punctuation
        removed, diacritics stripped, and whitespace collapsed.
    Side Effects / State: None; pure function.
    Dependencies: Uses unicodedata and regex; called by the conversational responder.
    Failure Modes: Returns an empty string when input is falsy.
    If Removed: Greeting and small-talk detection misses punctuated input
        ("Hello!!", "thanks.") and routes it to the LLM.
    Testing Notes: Validate "Hey, how's it going?" -> "hey hows it going".
    """
    # Lowercase, fold accents, drop punctuation, and collapse whitespace.
    if not text:
        return ""
    lowered = text.lower()
    decomposed = unicodedata.normalize("NFD", lowered)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    stripped = stripped.replace("'", "").replace("’", "")
    cleaned = re.sub(r"[^\w\s]+", " ", stripped)
    return re.sub(r"\s+", " ", cleaned).strip()


def normalize_key(text: str) -> str:
    """Purpose: Produce a compact key for catalog matching.
    Inputs/Outputs: Input is a raw string; output is lowercase text without `.,!?`,
        hyphens, or whitespace.
    Side Effects / State: None; pure function.
    Dependencies: Used by the product query resolver for names and trigger phrases.
    Failure Modes: Returns empty string for falsy input; otherwise deterministic.
    If Removed: "ARCAD Skipper" and "arcad-skipper" no longer resolve to the same product.
    Testing Notes: Ensure "ARCAD-Skipper?" -> "arcadskipper".
    """
    # Collapse separators so product names match regardless of spelling style.
    if not text:
        return ""
    lowered = re.sub(r"[.,!?]", "", text.lower())
    return re.sub(r"[-\s]", "", lowered)


def contains_phrase(normalized: str, phrase: str) -> bool:
    """Return True if phrase occurs in normalized text on word boundaries."""
    return re.search(r"\b" + re.escape(phrase) + r"\b", normalized) is not None
