"""Static ARCAD product catalog.

The catalog is compiled into the package and loaded once at import time. Records are
frozen so the routing code can share them across requests without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class ProductCategory(str, Enum):
    DEVOPS = "DevOps"
    MODERNIZATION = "Modernization"
    TESTING = "Testing"
    SECURITY = "Security"
    INTEGRATION = "Integration"


@dataclass(frozen=True)
class TechnicalDetails:
    """Optional platform and integration facts for a product."""
    platforms: Tuple[str, ...] = ()
    integrations: Tuple[str, ...] = ()
    requirements: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProductRecord:
    """Normalized view of one catalog entry."""
    name: str
    url: str
    description: str
    category: ProductCategory
    key_features: Tuple[str, ...]
    related_products: Tuple[str, ...] = field(default_factory=tuple)
    technical_details: Optional[TechnicalDetails] = None


_PRODUCTS: List[ProductRecord] = [
    ProductRecord(
        name="ARCAD-Skipper",
        url="https://www.arcadsoftware.com/products/arcad-skipper/",
        description="Application analysis and documentation tool for IBM i modernization",
        category=ProductCategory.MODERNIZATION,
        key_features=(
            "Cross-reference database for IBM i applications",
            "Impact analysis for code changes",
            "Automated documentation generation",
            "Code quality metrics and analysis",
            "Integration with DevOps tools",
        ),
        related_products=("ARCAD-Observer", "ARCAD-Transformer"),
        technical_details=TechnicalDetails(
            platforms=("IBM i",),
            integrations=("Git", "Jenkins", "ARCAD-Observer"),
        ),
    ),
    ProductRecord(
        name="ARCAD-Observer",
        url="https://www.arcadsoftware.com/products/arcad-observer/",
        description="Real-time application monitoring and performance analysis",
        category=ProductCategory.DEVOPS,
        key_features=(
            "Real-time application monitoring",
            "Performance metrics tracking",
            "Resource usage analysis",
            "Bottleneck identification",
            "Integration with CI/CD pipelines",
        ),
        related_products=("ARCAD-Skipper", "ARCAD-Deliver"),
        technical_details=TechnicalDetails(
            platforms=("IBM i",),
            integrations=("Jenkins", "Grafana", "ELK Stack"),
        ),
    ),
    ProductRecord(
        name="ARCAD-Verifier",
        url="https://www.arcadsoftware.com/products/arcad-verifier/",
        description="Quality assurance and testing solution for IBM i applications",
        category=ProductCategory.TESTING,
        key_features=(
            "Automated testing capabilities",
            "Test coverage analysis",
            "Regression testing",
            "Integration with CI/CD pipelines",
        ),
    ),
    ProductRecord(
        name="ARCAD-Transformer",
        url="https://www.arcadsoftware.com/products/arcad-transformer/",
        description="Comprehensive modernization suite for IBM i applications",
        category=ProductCategory.MODERNIZATION,
        key_features=(
            "RPG code conversion",
            "Database modernization",
            "User interface modernization",
            "Code refactoring tools",
        ),
    ),
    ProductRecord(
        name="ARCAD-Listener",
        url="https://www.arcadsoftware.com/products/arcad-listener/",
        description="Real-time change tracking and version control for IBM i",
        category=ProductCategory.DEVOPS,
        key_features=(
            "Source code change monitoring",
            "Git integration",
            "Version control management",
            "Change history tracking",
        ),
    ),
    ProductRecord(
        name="ARCAD-CodeChecker",
        url="https://www.arcadsoftware.com/products/arcad-codechecker/",
        description="Code quality and standards enforcement tool",
        category=ProductCategory.DEVOPS,
        key_features=(
            "Code quality analysis",
            "Coding standards enforcement",
            "Automated code reviews",
            "Quality metrics reporting",
        ),
    ),
    ProductRecord(
        name="ARCAD-API",
        url="https://www.arcadsoftware.com/products/arcad-api/",
        description="API management and development solution",
        category=ProductCategory.INTEGRATION,
        key_features=(
            "API creation and management",
            "REST API development",
            "API documentation",
            "Integration capabilities",
        ),
    ),
    ProductRecord(
        name="ARCAD-Builder",
        url="https://www.arcadsoftware.com/products/arcad-builder/",
        description="Build and deployment automation for IBM i",
        category=ProductCategory.DEVOPS,
        key_features=(
            "Automated builds",
            "Deployment automation",
            "Build pipeline integration",
            "Version management",
        ),
    ),
    ProductRecord(
        name="ARCAD iUnit",
        url="https://www.arcadsoftware.com/arcad/products/arcad-iunit-ibm-i-unit-testing/",
        description="Unit testing framework for IBM i applications",
        category=ProductCategory.TESTING,
        key_features=(
            "Automated unit testing",
            "Test case management",
            "Test coverage analysis",
            "Integration with CI/CD",
        ),
    ),
    ProductRecord(
        name="ARCAD Transformer DB",
        url="https://www.arcadsoftware.com/arcad/products/arcad-transformer-db-database-modernization/",
        description="Database modernization solution for IBM i",
        category=ProductCategory.MODERNIZATION,
        key_features=(
            "Database structure analysis",
            "Data migration tools",
            "Schema modernization",
            "Data quality validation",
        ),
    ),
    ProductRecord(
        name="DOT Anonymizer",
        url="https://www.arcadsoftware.com/dot/data-masking/dot-anonymizer/",
        description="Data masking and anonymization solution",
        category=ProductCategory.SECURITY,
        key_features=(
            "Data privacy protection",
            "Compliance management",
            "Test data generation",
            "Sensitive data handling",
        ),
    ),
]

PRODUCT_CATALOG: Dict[str, ProductRecord] = {product.name: product for product in _PRODUCTS}


def get_product(name: str) -> Optional[ProductRecord]:
    return PRODUCT_CATALOG.get(name)


def products_by_category() -> Dict[ProductCategory, List[ProductRecord]]:
    """Purpose: Group catalog records by category in catalog order.
    Inputs/Outputs: No inputs; returns an ordered dict of category -> records.
    Side Effects / State: None; builds a fresh dict on each call.
    Dependencies: Uses PRODUCT_CATALOG insertion order.
    Failure Modes: None.
    If Removed: Product listings cannot be grouped for display.
    Testing Notes: Verify every record appears exactly once.
    """
    # Preserve first-seen category order so listings stay stable.
    grouped: Dict[ProductCategory, List[ProductRecord]] = {}
    for product in PRODUCT_CATALOG.values():
        grouped.setdefault(product.category, []).append(product)
    return grouped
