"""Matching rules and constants."""
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Factor weights, must sum to exactly 1.00
FACTOR_WEIGHTS: Mapping[str, Decimal] = MappingProxyType({
    "category": Decimal("0.30"),
    "value": Decimal("0.25"),
    "level": Decimal("0.20"),
    "workload": Decimal("0.15"),
    "performance": Decimal("0.10"),
})

# Category match points
CATEGORY_SPECIALIST = 100
CATEGORY_ALLOWED = 50
CATEGORY_BLOCKED = 0

# Value match points: bounds are a hard gate, no partial credit
VALUE_IN_RANGE = 100
VALUE_OUT_OF_RANGE = 0

# Level bands: price > HIGH_VALUE_MIN wants SENIOR, price <= ENTRY_VALUE_MAX wants JUNIOR,
# everything in between wants PLENO
HIGH_VALUE_MIN = Decimal("100000")
ENTRY_VALUE_MAX = Decimal("50000")
LEVEL_IDEAL = 100
LEVEL_MISMATCH_HIGH_VALUE = 20
LEVEL_MISMATCH = 50

# Workload reason buckets (occupancy ratio), advisory only
LOW_LOAD_MAX = Decimal("0.3")
MEDIUM_LOAD_MAX = Decimal("0.7")

# Conversion rate reason buckets
EXCELLENT_CONVERSION_MIN = Decimal("0.30")
GOOD_CONVERSION_MIN = Decimal("0.15")

# Auto-assign when top score >= this
AUTO_ASSIGN_MIN = 80

# Default number of recommendations returned
DEFAULT_TOP_N = 3

# Score range
MIN_SCORE = 0
MAX_SCORE = 100


class MatchingConfig(BaseModel):
    """Weights, thresholds and band cutoffs used by the matching engine."""

    model_config = ConfigDict(frozen=True)

    weights: Mapping[str, Decimal] = Field(default_factory=lambda: MappingProxyType(dict(FACTOR_WEIGHTS)))
    auto_assign_min: int = Field(default=AUTO_ASSIGN_MIN, ge=MIN_SCORE, le=MAX_SCORE)

    category_specialist: int = Field(default=CATEGORY_SPECIALIST, ge=MIN_SCORE, le=MAX_SCORE)
    category_allowed: int = Field(default=CATEGORY_ALLOWED, ge=MIN_SCORE, le=MAX_SCORE)
    category_blocked: int = Field(default=CATEGORY_BLOCKED, ge=MIN_SCORE, le=MAX_SCORE)

    high_value_min: Decimal = HIGH_VALUE_MIN
    entry_value_max: Decimal = ENTRY_VALUE_MAX
    level_ideal: int = Field(default=LEVEL_IDEAL, ge=MIN_SCORE, le=MAX_SCORE)
    level_mismatch_high_value: int = Field(default=LEVEL_MISMATCH_HIGH_VALUE, ge=MIN_SCORE, le=MAX_SCORE)
    level_mismatch: int = Field(default=LEVEL_MISMATCH, ge=MIN_SCORE, le=MAX_SCORE)

    low_load_max: Decimal = LOW_LOAD_MAX
    medium_load_max: Decimal = MEDIUM_LOAD_MAX

    excellent_conversion_min: Decimal = EXCELLENT_CONVERSION_MIN
    good_conversion_min: Decimal = GOOD_CONVERSION_MIN

    @field_validator("weights", mode="after")
    @classmethod
    def read_only_weights(cls, value):
        # Read-only: DEFAULT_CONFIG is shared by every engine
        return MappingProxyType(dict(value))

    @model_validator(mode="after")
    def check_consistency(self) -> "MatchingConfig":
        missing = set(FACTOR_WEIGHTS) - set(self.weights)
        unknown = set(self.weights) - set(FACTOR_WEIGHTS)
        if missing or unknown:
            raise ValueError(
                f"weights must name exactly {sorted(FACTOR_WEIGHTS)} "
                f"(missing={sorted(missing)}, unknown={sorted(unknown)})"
            )
        if any(weight < 0 for weight in self.weights.values()):
            raise ValueError("weights must be non-negative")
        total = sum(self.weights.values(), Decimal("0"))
        if total != Decimal("1"):
            raise ValueError(f"weights must sum to 1.00, got {total}")
        if self.entry_value_max >= self.high_value_min:
            raise ValueError("entry_value_max must be below high_value_min")
        if self.low_load_max >= self.medium_load_max:
            raise ValueError("low_load_max must be below medium_load_max")
        if self.good_conversion_min >= self.excellent_conversion_min:
            raise ValueError("good_conversion_min must be below excellent_conversion_min")
        return self


DEFAULT_CONFIG = MatchingConfig()
