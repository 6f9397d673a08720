"""User interaction helpers."""

from .categories import BUSINESS_CATEGORIES, filter_categories, selectable_categories
from .progress import ProgressReporter

__all__ = [
    "BUSINESS_CATEGORIES",
    "ProgressReporter",
    "filter_categories",
    "selectable_categories",
]
