"""Demographic cohort bucketing and percentile display helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass

# (inclusive upper age, band label), checked in order
AGE_BANDS = [
    (22, "18-22"),
    (27, "23-27"),
    (32, "28-32"),
    (37, "33-37"),
    (42, "38-42"),
    (47, "43-47"),
    (52, "48-52"),
    (57, "53-57"),
    (62, "58-62"),
]
UNDER_AGE_BAND = "Under 18"
TOP_AGE_BAND = "63+"

COUNTRY_REGIONS = {
    "US": "North America",
    "CA": "North America",
    "UK": "Europe",
    "DE": "Europe",
    "FR": "Europe",
    "AU": "Oceania",
}
DEFAULT_REGION = "Global"


@dataclass(frozen=True)
class Cohort:
    """Age band x sex/gender x region bucket a respondent is ranked within."""

    age_band: str
    sex: str
    region: str

    @property
    def key(self) -> str:
        return f"{self.age_band}_{self.sex}_{self.region}"

    def as_dict(self) -> dict[str, str]:
        return {"age_band": self.age_band, "sex": self.sex, "region": self.region}

    @classmethod
    def from_profile(cls, age: int, sex: str, country: str) -> Cohort:
        """Build a cohort from raw profile fields (age in years, ISO-ish country code)."""
        return cls(age_band=get_age_band(age), sex=sex, region=get_region(country))


def get_age_band(age: int) -> str:
    if age < 18:
        return UNDER_AGE_BAND
    for upper, label in AGE_BANDS:
        if age <= upper:
            return label
    return TOP_AGE_BAND


def get_region(country: str) -> str:
    return COUNTRY_REGIONS.get(country, DEFAULT_REGION)


def get_cohort_key(age: int, sex: str, region: str) -> str:
    """Cohort key for an age and an already-resolved region."""
    return f"{get_age_band(age)}_{sex}_{region}"


def _ordinal_suffix(num: int) -> str:
    j = num % 10
    k = num % 100
    if j == 1 and k != 11:
        return "st"
    if j == 2 and k != 12:
        return "nd"
    if j == 3 and k != 13:
        return "rd"
    return "th"


def format_percentile(percentile: float) -> str:
    """Render a percentile as an ordinal, e.g. 72.4 -> '72nd'."""
    # Half-up rounding; round() would give 12.5 -> 12.
    rounded = math.floor(percentile + 0.5)
    return f"{rounded}{_ordinal_suffix(rounded)}"
