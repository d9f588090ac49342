"""Validation and normalization package."""

from spendbook.validation.normalizer import (
    RecordNormalizer,
    normalize_categories,
    parse_instant,
)
from spendbook.validation.validator import (
    build_model,
    clean_category_name,
    clean_title,
    parse_amount,
    require_amount,
)

__all__ = [
    "RecordNormalizer",
    "build_model",
    "clean_category_name",
    "clean_title",
    "normalize_categories",
    "parse_amount",
    "parse_instant",
    "require_amount",
]
