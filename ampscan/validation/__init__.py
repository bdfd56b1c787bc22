"""Scannable URL correlation — merge, staleness, and wire schema."""

from ampscan.validation.scannable_urls import ScannableURL, ScannableURLCorrelator
from ampscan.validation.schema import get_item_schema, project_item
from ampscan.validation.staleness import get_staleness, is_stale

__all__ = [
    "ScannableURL",
    "ScannableURLCorrelator",
    "get_item_schema",
    "project_item",
    "get_staleness",
    "is_stale",
]
