from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

PROFILE_URL_BASE = "https://joshuaproject.net/people_groups"

JP_SCALE_LABELS = {
    1: "Unreached",
    2: "Unreached",
    3: "Minimally Reached",
    4: "Partially Reached",
    5: "Significantly Reached",
}


def to_scale(value: Any) -> int:
    #anything non-numeric counts as "no scale"
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return 0


class Confidence(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class PeopleGroupCandidate(BaseModel):
    """One people group record as returned by the Joshua Project API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    people_id3: str = Field("", alias="PeopleID3")
    name_in_country: str = Field("", alias="PeopNameInCountry")
    name_across_countries: str = Field("", alias="PeopNameAcrossCountries")
    country: str = Field("", alias="Ctry")
    rog3: str = Field("", alias="ROG3")
    primary_religion: str = Field("", alias="PrimaryReligion")
    primary_language: str = Field("", alias="PrimaryLanguageName")
    jp_scale: int = Field(0, alias="JPScale")
    frontier: str = Field("", alias="Frontier")

    @field_validator(
        "people_id3", "name_in_country", "name_across_countries", "country",
        "rog3", "primary_religion", "primary_language", "frontier",
        mode="before",
    )
    @classmethod
    def _as_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("jp_scale", mode="before")
    @classmethod
    def _as_scale(cls, v: Any) -> int:
        return to_scale(v)


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    matched_name: str
    people_id3: str = ""
    country: str = ""
    language: str = ""
    religion: str = ""
    jp_scale: int = 0
    frontier: str = ""
    confidence: Confidence = Confidence.LOW
    reasoning: str = ""

    @computed_field
    @property
    def jp_scale_label(self) -> str:
        return JP_SCALE_LABELS.get(self.jp_scale, "")

    @computed_field
    @property
    def is_frontier(self) -> bool:
        return self.frontier == "Y"

    @computed_field
    @property
    def profile_url(self) -> Optional[str]:
        if not self.people_id3:
            return None
        return f"{PROFILE_URL_BASE}/{self.people_id3}"


class SearchQuery(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reported_name: str = ""
    country: str = ""
    city: str = ""
    religion: str = ""


class KeysUpdate(BaseModel):
    jp_api_key: str = ""
    anthropic_api_key: str = ""


class KeysStatus(BaseModel):
    jp_api_key: bool
    anthropic_api_key: bool
    ready: bool


class LookupOutcome(BaseModel):
    reported_name: str
    candidate_count: int
    result: MatchResult
