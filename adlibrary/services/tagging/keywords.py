"""Static keyword vocabularies for hashtag classification.

All keywords are lowercase. Sets are frozen at import time and shared
read-only by every ingestion worker.
"""

DEMOGRAPHICS_KEYWORDS = frozenset({
    "male", "female", "18-25", "25-34", "35-44", "45-54", "55+",
})

SECTOR_KEYWORDS = frozenset({
    "beauty", "fashion", "tech", "travel", "cpg", "food", "bev", "retail",
})

EMOTION_KEYWORDS = frozenset({
    "happy", "positive", "happypositive", "happy/positive", "exciting",
    "relaxing", "inspiring", "serious", "festive", "calm", "determined",
})

# Multi-word entries never match a whitespace-split token but are kept so the
# vocabulary stays in sync with the hashtag generation prompt.
LOCATION_KEYWORDS = frozenset({
    "seoul", "dubai", "doha", "newyork", "new york", "paris", "tokyo",
    "london", "berlin", "lasvegas", "las vegas", "france", "korea", "qatar",
    "uae", "usa", "bocachica", "bocachicabeach", "marathon",
})

BRAND_KEYWORDS = frozenset({
    "fentybeauty", "adidas", "nike", "spacex", "apple", "microsoft",
    "google", "amazon", "ferrari", "heineken", "redbullracing", "redbull",
    "sailgp", "fifaworldcup", "fifa", "tourdefrance", "nttdata", "oracle",
})

# Priority order: a token lands in the first bucket whose vocabulary has it.
CATEGORY_PRIORITY: tuple[tuple[str, frozenset[str]], ...] = (
    ("demographics", DEMOGRAPHICS_KEYWORDS),
    ("sector", SECTOR_KEYWORDS),
    ("emotions", EMOTION_KEYWORDS),
    ("locations", LOCATION_KEYWORDS),
    ("brands", BRAND_KEYWORDS),
)
