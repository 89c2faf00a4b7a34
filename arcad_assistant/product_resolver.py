"""Deterministic catalog answers: product details, comparisons, and listings.

Everything here is pure formatting over PRODUCT_CATALOG. Matching is done on
compact keys (see utils.normalize_key) so "ARCAD Skipper", "arcad-skipper" and
"ARCAD-Skipper?" all hit the same record.
"""

from __future__ import annotations

from typing import List, Tuple

from .catalog import PRODUCT_CATALOG, ProductRecord, products_by_category
from .constants import (
    PRODUCT_COMPARISON_TERMS,
    PRODUCT_COUNT_TERMS,
    PRODUCT_LIST_TERMS,
    PRODUCT_QUERY_TERMS,
)
from .utils import normalize_key

LISTING_EXAMPLES = [
    "Tell me more about ARCAD-Skipper",
    "What are the features of ARCAD-Observer?",
    "Compare ARCAD-Transformer with ARCAD-CodeChecker",
]

_PRODUCT_KEYS: List[Tuple[str, str]] = [(name, normalize_key(name)) for name in PRODUCT_CATALOG]


def _has_any_term(question: str, terms: List[str]) -> bool:
    key = normalize_key(question)
    return any(normalize_key(term) in key for term in terms)


def is_product_query(question: str) -> bool:
    return _has_any_term(question, PRODUCT_QUERY_TERMS)


def is_product_listing_query(question: str) -> bool:
    """Purpose: Detect requests to list or count the catalog.
    Inputs/Outputs: Input is the raw question; output is True for listing/count requests.
    Side Effects / State: None.
    Dependencies: Uses PRODUCT_LIST_TERMS and PRODUCT_COUNT_TERMS.
    Failure Modes: None.
    If Removed: "How many products do you have?" falls through to the LLM.
    Testing Notes: "which products..." and "how many products..." both match.
    """
    # Explicit listing phrases, or a count/list verb that also mentions products.
    if _has_any_term(question, PRODUCT_LIST_TERMS):
        return True
    key = normalize_key(question)
    return "product" in key and _has_any_term(question, PRODUCT_COUNT_TERMS)


def is_product_comparison_query(question: str) -> bool:
    return _has_any_term(question, PRODUCT_COMPARISON_TERMS)


def is_catalog_query(question: str) -> bool:
    return (
        is_product_query(question)
        or is_product_listing_query(question)
        or is_product_comparison_query(question)
    )


def find_mentioned_products(question: str) -> List[str]:
    """Purpose: Find catalog products named in a question, in order of mention.
    Inputs/Outputs: Input is the raw question; output is a list of product names.
    Side Effects / State: None.
    Dependencies: Uses normalize_key over the question and every catalog name.
    Failure Modes: None; returns [] when nothing matches.
    If Removed: Detail and comparison answers cannot be rendered.
    Testing Notes: "ARCAD Transformer DB" must not also report "ARCAD-Transformer".
    """
    # Collect every occurrence span, then drop spans nested in a longer match.
    key = normalize_key(question)
    spans: List[Tuple[int, int, str]] = []
    for name, name_key in _PRODUCT_KEYS:
        start = key.find(name_key)
        while start != -1:
            spans.append((start, start + len(name_key), name))
            start = key.find(name_key, start + 1)

    kept: List[Tuple[int, int, str]] = []
    for span in spans:
        nested = any(
            other is not span and other[0] <= span[0] and span[1] <= other[1] and (other[1] - other[0]) > (span[1] - span[0])
            for other in spans
        )
        if not nested:
            kept.append(span)

    kept.sort(key=lambda item: item[0])
    ordered: List[str] = []
    for _, _, name in kept:
        if name not in ordered:
            ordered.append(name)
    return ordered


def render_product_detail(product: ProductRecord) -> str:
    lines = [f"**{product.name}**", "", product.description, "", f"**Category:** {product.category.value}", ""]
    lines.append("**Key Features:**")
    lines.extend(f"- {feature}" for feature in product.key_features)
    lines.append("")

    details = product.technical_details
    if details and details.platforms:
        lines.append("**Supported Platforms:**")
        lines.extend(f"- {platform}" for platform in details.platforms)
        lines.append("")
    if details and details.integrations:
        lines.append("**Integrations:**")
        lines.extend(f"- {integration}" for integration in details.integrations)
        lines.append("")
    if product.related_products:
        lines.append("**Related Products:**")
        lines.extend(f"- {related}" for related in product.related_products)
        lines.append("")

    lines.append(f"For more details, visit: {product.url}")
    return "\n".join(lines) + "\n"


def render_product_comparison(first: ProductRecord, second: ProductRecord) -> str:
    """Purpose: Render a side-by-side comparison of two catalog products.
    Inputs/Outputs: Inputs are two ProductRecords; output is markdown text.
    Side Effects / State: None.
    Dependencies: ProductRecord fields only.
    Failure Modes: None.
    If Removed: Comparison questions go to the LLM instead of the catalog.
    Testing Notes: Both categories and both URLs appear, in argument order.
    """
    # Sections mirror the detail block: category, purpose, features, links.
    lines = [f"Let me compare **{first.name}** and **{second.name}** for you:", ""]
    lines.append("**Categories:**")
    lines.append(f"- {first.name}: {first.category.value}")
    lines.append(f"- {second.name}: {second.category.value}")
    lines.append("")
    lines.append("**Purpose:**")
    lines.append(f"- {first.name}: {first.description}")
    lines.append(f"- {second.name}: {second.description}")
    lines.append("")
    lines.append("**Key Features Comparison:**")
    lines.append("")
    for product in (first, second):
        lines.append(f"*{product.name}:*")
        lines.extend(f"- {feature}" for feature in product.key_features)
        lines.append("")
    lines.append("For more detailed information:")
    lines.append(f"- {first.name}: {first.url}")
    lines.append(f"- {second.name}: {second.url}")
    return "\n".join(lines) + "\n"


def render_product_listing() -> str:
    grouped = products_by_category()
    lines = [
        f"ARCAD Software offers {len(PRODUCT_CATALOG)} powerful products for IBM i modernization "
        "and DevOps solutions.",
        "",
        "Here's an overview of our products by category:",
        "",
    ]
    for category, products in grouped.items():
        lines.append(f"**{category.value}**")
        lines.extend(f"- **{product.name}**: {product.description}" for product in products)
        lines.append("")
    lines.append("Would you like to know more about any specific product? Just ask!")
    lines.append("For example:")
    lines.extend(f"- '{example}'" for example in LISTING_EXAMPLES)
    return "\n".join(lines) + "\n"


def resolve_product_query(question: str) -> str:
    """Purpose: Answer a catalog question without any network access.
    Inputs/Outputs: Input is the raw question; output is markdown text, or "" when the
        catalog cannot answer it (caller falls back to the LLM path).
    Side Effects / State: None; pure formatting.
    Dependencies: Uses find_mentioned_products and the render_* helpers.
    Failure Modes: None; never raises.
    If Removed: Product questions always cost a context fetch and an LLM call.
    Testing Notes: Cover comparison, multi-detail, listing, and no-answer cases.
    """
    # Comparison needs two products; otherwise any mention gets a detail block.
    mentioned = find_mentioned_products(question)
    if len(mentioned) >= 2 and is_product_comparison_query(question):
        return render_product_comparison(PRODUCT_CATALOG[mentioned[0]], PRODUCT_CATALOG[mentioned[1]])
    if mentioned:
        return "\n".join(render_product_detail(PRODUCT_CATALOG[name]) for name in mentioned)
    if is_product_listing_query(question):
        return render_product_listing()
    return ""
