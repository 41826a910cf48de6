"""Deterministic hashtag to category classification.

`classify` turns the raw hashtag text produced by the video model into the
six-field metadata record stored on each video. It is pure and total: the
same text always produces the same record and no input raises.
"""

import re
from typing import Any, Mapping, Optional

from .keywords import CATEGORY_PRIORITY
from .models import ClassifiedMetadata, DisplayTag

_AGE_RANGE = re.compile(r"\d+-\d+")

# Display order and labels for metadata_to_tags (source is handled separately)
_TAG_CATEGORIES = (
    ("demographics", "Demographics"),
    ("sector", "Sector"),
    ("emotions", "Emotions"),
    ("brands", "Brands"),
    ("locations", "Location"),
)


def extract_hashtags(text: Optional[str]) -> list[str]:
    """Return normalized hashtag tokens in their original order.

    Newlines count as whitespace; only tokens starting with "#" are kept,
    with the "#" stripped and the rest lowercased.

    Example:
        >>> extract_hashtags("#Tech #Paris\\n#Nike plain")
        ['tech', 'paris', 'nike']
    """
    if not text:
        return []
    tokens = text.replace("\n", " ").split()
    return [token[1:].lower() for token in tokens if token.startswith("#")]


def classify(text: Optional[str]) -> ClassifiedMetadata:
    """Classify hashtag text into categorical metadata.

    Args:
        text: Raw hashtag text, e.g. "#male #tech #exciting #newyork #adidas"

    Returns:
        ClassifiedMetadata with comma-joined tokens per category
    """
    buckets: dict[str, list[str]] = {name: [] for name, _ in CATEGORY_PRIORITY}
    unclassified: list[str] = []

    for token in extract_hashtags(text):
        for name, keywords in CATEGORY_PRIORITY:
            if token in keywords:
                buckets[name].append(token)
                break
        else:
            unclassified.append(token)

    # Leftover tags fill empty locations first, then empty brands.
    remaining = iter(unclassified)
    if not buckets["locations"]:
        token = next(remaining, None)
        if token is not None:
            buckets["locations"].append(token)
    if not buckets["brands"]:
        token = next(remaining, None)
        if token is not None:
            buckets["brands"].append(token)

    return ClassifiedMetadata(**{name: ", ".join(tokens) for name, tokens in buckets.items()})


def _split_values(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def metadata_to_tags(metadata: Optional[Mapping[str, Any]]) -> list[DisplayTag]:
    """Convert a stored metadata mapping into display tags.

    `source` becomes a single tag; the other categories are split on commas.
    Non-string values are ignored.
    """
    if not metadata:
        return []

    tags: list[DisplayTag] = []

    source = metadata.get("source")
    if isinstance(source, str) and source:
        tags.append(DisplayTag(category="Source", value=source))

    for field, label in _TAG_CATEGORIES:
        value = metadata.get(field)
        if isinstance(value, str) and value:
            tags.extend(DisplayTag(category=label, value=part) for part in _split_values(value))

    return tags


def split_demographics(demographics: Optional[str]) -> tuple[str, str]:
    """Split a demographics value into (age, gender) display strings.

    Example:
        >>> split_demographics("male, 25-34")
        ('25-34', 'male')
    """
    if not demographics:
        return "", ""

    parts = _split_values(demographics)
    age = [p for p in parts if "age" in p.lower() or "old" in p.lower() or _AGE_RANGE.search(p)]
    gender = [
        p for p in parts
        if "male" in p.lower() or "women" in p.lower() or "men" in p.lower()
    ]
    return ", ".join(age), ", ".join(gender)
