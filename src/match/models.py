"""Data contract for the lead-to-salesperson matching engine."""
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.match.rules import MAX_SCORE, MIN_SCORE


class Category(str, Enum):
    """Vehicle category as stored in inventory. Lookups are case-insensitive."""
    SUV = "SUV"
    SEDAN = "SEDAN"
    HATCH = "HATCH"
    HATCHBACK = "HATCHBACK"
    PICKUP = "PICKUP"
    COUPE = "COUPE"
    ESPORTIVO = "ESPORTIVO"
    ELETRICO = "ELETRICO"
    MINIVAN = "MINIVAN"
    CAMINHAO_LEVE = "CAMINHAO_LEVE"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().upper()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class Level(str, Enum):
    """Salesperson seniority tier."""
    JUNIOR = "JUNIOR"
    PLENO = "PLENO"
    SENIOR = "SENIOR"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    SALESPERSON = "SALESPERSON"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class LeadStatus(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    NEGOTIATING = "NEGOTIATING"
    CONVERTED = "CONVERTED"
    LOST = "LOST"
    ARCHIVED = "ARCHIVED"


# A lead in any of these states no longer counts against a salesperson's capacity
TERMINAL_LEAD_STATUSES = frozenset({LeadStatus.CONVERTED, LeadStatus.LOST, LeadStatus.ARCHIVED})


def _empty_if_none(value):
    return frozenset() if value is None else value


class Vehicle(BaseModel):
    """Vehicle a lead is interested in. Read-only during a scoring pass."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: Category
    sale_price: Decimal = Field(gt=0)
    make: str = ""
    model: str = ""
    year: Optional[int] = None


class AssignmentRules(BaseModel):
    """Optional per-salesperson restrictions. Empty categories means no restriction."""

    model_config = ConfigDict(frozen=True)

    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    allowed_categories: FrozenSet[Category] = frozenset()

    @field_validator("allowed_categories", mode="before")
    @classmethod
    def no_categories_means_unrestricted(cls, value):
        return _empty_if_none(value)

    @property
    def has_value_bounds(self) -> bool:
        return self.min_value is not None or self.max_value is not None


class Salesperson(BaseModel):
    """Salesperson eligible to receive leads."""

    model_config = ConfigDict(frozen=True)

    id: str
    level: Level
    name: str = ""
    specialties: FrozenSet[Category] = frozenset()
    # Not validated > 0 here: a bad capacity is reported by the engine per candidate
    max_lead_capacity: int
    assignment_rules: Optional[AssignmentRules] = None
    status: UserStatus = UserStatus.ACTIVE

    @field_validator("specialties", mode="before")
    @classmethod
    def no_specialties_means_none(cls, value):
        return _empty_if_none(value)

    @property
    def rules(self) -> AssignmentRules:
        """Assignment rules, with absence meaning no restriction."""
        return self.assignment_rules or AssignmentRules()


class WorkloadSnapshot(BaseModel):
    """Open (non-terminal) leads held by a salesperson at scoring time."""

    model_config = ConfigDict(frozen=True)

    open_leads: int = Field(default=0, ge=0)


class PerformanceSnapshot(BaseModel):
    """Leads received and converted since the start of the current month."""

    model_config = ConfigDict(frozen=True)

    received: int = Field(default=0, ge=0)
    converted: int = Field(default=0, ge=0)


class Candidate(BaseModel):
    """Everything the engine needs about one salesperson, fetched before scoring."""

    model_config = ConfigDict(frozen=True)

    salesperson: Salesperson
    workload: WorkloadSnapshot = Field(default_factory=WorkloadSnapshot)
    performance: PerformanceSnapshot = Field(default_factory=PerformanceSnapshot)


class FactorScore(BaseModel):
    """Score and explanation produced by a single factor calculator."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=MIN_SCORE, le=MAX_SCORE)
    code: str
    reason: str


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: FactorScore
    value: FactorScore
    level: FactorScore
    workload: FactorScore
    performance: FactorScore

    def factors(self) -> List[FactorScore]:
        """Factor scores in reporting order."""
        return [self.category, self.value, self.level, self.workload, self.performance]

    def scores(self) -> Dict[str, int]:
        return {
            "category": self.category.score,
            "value": self.value.score,
            "level": self.level.score,
            "workload": self.workload.score,
            "performance": self.performance.score,
        }


class ScoredCandidate(BaseModel):
    """A salesperson with aggregate score, breakdown and ordered reasons."""

    model_config = ConfigDict(frozen=True)

    salesperson: Salesperson
    open_leads: int
    score: int = Field(ge=MIN_SCORE, le=MAX_SCORE)
    breakdown: ScoreBreakdown
    reasons: List[str]

    @property
    def salesperson_id(self) -> str:
        return self.salesperson.id

    @property
    def reason_codes(self) -> List[str]:
        return [factor.code for factor in self.breakdown.factors()]


class AssignmentDecision(BaseModel):
    """Whether the top candidate should be assigned without human review."""

    model_config = ConfigDict(frozen=True)

    should_auto_assign: bool
    salesperson_id: Optional[str] = None
    score: Optional[int] = None

    @model_validator(mode="after")
    def check_salesperson_iff_assign(self) -> "AssignmentDecision":
        if self.should_auto_assign and self.salesperson_id is None:
            raise ValueError("salesperson_id is required when should_auto_assign is true")
        if not self.should_auto_assign and self.salesperson_id is not None:
            raise ValueError("salesperson_id must be empty when should_auto_assign is false")
        return self
