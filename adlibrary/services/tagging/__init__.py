"""Hashtag classification into categorical video metadata.

Example:
    >>> from adlibrary.services.tagging import classify
    >>> classify("#male #tech #exciting #newyork #adidas").brands
    'adidas'
"""

from .classifier import classify, extract_hashtags, metadata_to_tags, split_demographics
from .keywords import (
    BRAND_KEYWORDS,
    CATEGORY_PRIORITY,
    DEMOGRAPHICS_KEYWORDS,
    EMOTION_KEYWORDS,
    LOCATION_KEYWORDS,
    SECTOR_KEYWORDS,
)
from .models import METADATA_FIELDS, ClassifiedMetadata, DisplayTag

__all__ = [
    # Models
    "ClassifiedMetadata",
    "DisplayTag",
    "METADATA_FIELDS",
    # Classification
    "classify",
    "extract_hashtags",
    "metadata_to_tags",
    "split_demographics",
    # Vocabularies
    "CATEGORY_PRIORITY",
    "DEMOGRAPHICS_KEYWORDS",
    "SECTOR_KEYWORDS",
    "EMOTION_KEYWORDS",
    "LOCATION_KEYWORDS",
    "BRAND_KEYWORDS",
]
