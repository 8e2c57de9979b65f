"""Domain models shared by providers, the engine and the orchestrator.

- PriceQuery: immutable request for one item
- RawObservation: a price point as a provider reported it
- NormalizedObservation: a price point in USD on the standard condition scale
- ValuationResult: fused valuation, validated on construction and when
  read back from a cache
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class StandardCondition(Enum):
    """Five-level ordinal condition scale, worst to best."""

    POOR = "Poor"
    GOOD = "Good"
    EXCELLENT = "Excellent"
    NEAR_MINT = "Near Mint"
    MINT = "Mint"

    @property
    def rank(self) -> int:
        return _CONDITION_ORDER.index(self)

    @classmethod
    def from_label(cls, label: str) -> "StandardCondition | None":
        """Exact (case-insensitive) lookup by display label."""
        wanted = label.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


_CONDITION_ORDER = list(StandardCondition)


class PriceQuery(BaseModel):
    """Immutable valuation request.

    Attributes:
        item_name: Item name used as the primary search keyword
        set_name: Optional set/series the item belongs to
        number: Optional collector number within the set
        condition: Optional condition label to restrict observations to
        window_days: Maximum age of observations in days
    """

    model_config = ConfigDict(frozen=True)

    item_name: str = Field(..., min_length=1)
    set_name: str | None = None
    number: str | None = None
    condition: str | None = None
    window_days: int = Field(default=30, ge=1)

    @field_validator("item_name")
    @classmethod
    def strip_item_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("item_name must not be blank")
        return v

    def keywords(self, number_prefix: str = "") -> str:
        """Space-joined search keywords: name, set, number."""
        parts = [self.item_name]
        if self.set_name:
            parts.append(self.set_name)
        if self.number:
            parts.append(f"{number_prefix}{self.number}")
        return " ".join(parts)


@dataclass(frozen=True)
class RawObservation:
    """One price point exactly as a provider reported it."""

    source: str
    price: float
    currency: str
    condition: str
    observed_date: datetime
    listing_url: str | None = None


@dataclass(frozen=True)
class NormalizedObservation:
    """One price point converted to USD on the standard condition scale."""

    source: str
    price_usd: float
    standard_condition: StandardCondition
    observed_date: datetime
    listing_url: str | None = None


class ValuationResult(BaseModel):
    """Fused valuation for one item over one observation window.

    Attributes:
        value_low: 10th percentile of retained prices (USD)
        value_median: 50th percentile of retained prices (USD)
        value_high: 90th percentile of retained prices (USD)
        observation_count: Number of observations retained after outlier removal
        window_days: Observation window the valuation covers
        sources: Sorted, de-duplicated names of contributing providers
        confidence: Trust score in [0, 1] from sample size and dispersion
        volatility: Coefficient of variation of retained prices
    """

    model_config = ConfigDict(frozen=True)

    value_low: float = Field(..., ge=0)
    value_median: float = Field(..., ge=0)
    value_high: float = Field(..., ge=0)
    observation_count: int = Field(..., ge=1)
    window_days: int = Field(..., ge=1)
    sources: tuple[str, ...]
    confidence: float = Field(..., ge=0.0, le=1.0)
    volatility: float = Field(..., ge=0.0)

    @field_validator("sources", mode="before")
    @classmethod
    def normalize_sources(cls, v) -> tuple[str, ...]:
        return tuple(sorted(set(v)))

    @model_validator(mode="after")
    def check_bounds_ordered(self) -> "ValuationResult":
        if not self.value_low <= self.value_median <= self.value_high:
            raise ValueError(
                "valuation bounds out of order: "
                f"{self.value_low} / {self.value_median} / {self.value_high}"
            )
        return self

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return self.model_dump(mode="json")
