from arcad_assistant.catalog import PRODUCT_CATALOG, products_by_category
from arcad_assistant.product_resolver import (
    LISTING_EXAMPLES,
    find_mentioned_products,
    is_catalog_query,
    is_product_comparison_query,
    is_product_listing_query,
    resolve_product_query,
)


def test_single_product_detail():
    answer = resolve_product_query("Tell me about ARCAD-Skipper")
    skipper = PRODUCT_CATALOG["ARCAD-Skipper"]
    assert answer.startswith("**ARCAD-Skipper**")
    assert "Application analysis and documentation tool for IBM i modernization" in answer
    assert "**Category:** Modernization" in answer
    for feature in skipper.key_features:
        assert f"- {feature}" in answer
    assert "For more details, visit: https://www.arcadsoftware.com/products/arcad-skipper/" in answer


def test_product_names_match_loosely():
    assert find_mentioned_products("what is arcad skipper?") == ["ARCAD-Skipper"]
    assert find_mentioned_products("ARCAD-SKIPPER!") == ["ARCAD-Skipper"]


def test_comparison_lists_both_products_in_order():
    answer = resolve_product_query("Compare ARCAD-Skipper and ARCAD-Observer")
    assert answer.startswith("Let me compare **ARCAD-Skipper** and **ARCAD-Observer** for you:")
    assert "- ARCAD-Skipper: Modernization" in answer
    assert "- ARCAD-Observer: DevOps" in answer
    assert answer.index("- ARCAD-Skipper: Modernization") < answer.index("- ARCAD-Observer: DevOps")
    assert "- ARCAD-Skipper: https://www.arcadsoftware.com/products/arcad-skipper/" in answer
    assert "- ARCAD-Observer: https://www.arcadsoftware.com/products/arcad-observer/" in answer


def test_comparison_follows_mention_order():
    answer = resolve_product_query("ARCAD-Observer vs ARCAD-Skipper")
    assert answer.startswith("Let me compare **ARCAD-Observer** and **ARCAD-Skipper**")


def test_nested_product_name_is_not_double_counted():
    assert find_mentioned_products("Tell me about ARCAD Transformer DB") == ["ARCAD Transformer DB"]
    assert find_mentioned_products("Compare ARCAD-Transformer with ARCAD Transformer DB") == [
        "ARCAD-Transformer",
        "ARCAD Transformer DB",
    ]


def test_several_products_without_comparison_get_detail_blocks():
    answer = resolve_product_query("Tell me about ARCAD-API and DOT Anonymizer")
    assert answer.index("**ARCAD-API**") < answer.index("**DOT Anonymizer**")
    assert "Let me compare" not in answer


def test_single_product_with_comparison_term_falls_back_to_detail():
    answer = resolve_product_query("compare ARCAD-Skipper")
    assert answer.startswith("**ARCAD-Skipper**")


def test_listing_groups_every_product():
    answer = resolve_product_query("Which products do you offer?")
    assert answer.startswith("ARCAD Software offers 11 powerful products")
    for category in products_by_category():
        assert f"**{category.value}**" in answer
    for name in PRODUCT_CATALOG:
        assert f"**{name}**" in answer
    for example in LISTING_EXAMPLES:
        assert f"'{example}'" in answer


def test_count_question_is_a_listing():
    assert is_product_listing_query("How many products are there?")
    assert not is_product_listing_query("How many people work at ARCAD?")


def test_detection_helpers():
    assert is_product_comparison_query("What is the difference between them?")
    assert is_catalog_query("What is DevOps?")
    assert not is_catalog_query("How do I install ARCAD-Skipper?")


def test_catalog_query_without_catalog_answer_is_empty():
    assert resolve_product_query("What is DevOps?") == ""
