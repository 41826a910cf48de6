"""Data models for hashtag classification."""

from pydantic import BaseModel, ConfigDict

METADATA_FIELDS = ("source", "sector", "emotions", "brands", "locations", "demographics")


class ClassifiedMetadata(BaseModel):
    """Categorical metadata derived from a video's hashtags.

    Each field is an empty string or a ", "-joined list of tokens.
    `source` is never filled by the classifier; it is reserved for an
    external enrichment step.
    """

    model_config = ConfigDict(frozen=True)

    source: str = ""
    sector: str = ""
    emotions: str = ""
    brands: str = ""
    locations: str = ""
    demographics: str = ""

    def as_dict(self) -> dict[str, str]:
        """Return the six fields as a plain mapping in canonical order."""
        return {name: getattr(self, name) for name in METADATA_FIELDS}

    def is_empty(self) -> bool:
        return not any(self.as_dict().values())


class DisplayTag(BaseModel):
    """A single category/value pair shown next to a video."""

    model_config = ConfigDict(frozen=True)

    category: str
    value: str
