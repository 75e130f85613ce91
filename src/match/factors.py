"""
Factor calculators for salesperson/vehicle compatibility.

Each calculator is pure: it returns a FactorScore (score in [0, 100], reason code,
reason text) and never raises for missing optional salesperson data.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from src.match.errors import ConfigurationError
from src.match.models import (
    FactorScore,
    Level,
    PerformanceSnapshot,
    Salesperson,
    Vehicle,
    WorkloadSnapshot,
)
from src.match.reasons import format_amount, format_reason
from src.match.rules import (
    DEFAULT_CONFIG,
    MAX_SCORE,
    MIN_SCORE,
    VALUE_IN_RANGE,
    VALUE_OUT_OF_RANGE,
    MatchingConfig,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


def round_score(value: Decimal) -> int:
    """Round half-up to an integer (92.5 -> 93)."""
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def _factor(score: int, code: str, **values) -> FactorScore:
    return FactorScore(score=score, code=code, reason=format_reason(code, **values))


def category_match(
    salesperson: Salesperson,
    vehicle: Vehicle,
    config: MatchingConfig = DEFAULT_CONFIG
) -> FactorScore:
    """
    Score how well the vehicle category fits the salesperson.

    Specialists get full marks. Non-specialists without a category restriction
    (or whose restriction allows the category) get partial credit.
    """
    category = vehicle.category.value

    if vehicle.category in salesperson.specialties:
        return _factor(config.category_specialist, "CATEGORY_SPECIALIST", category=category)

    allowed = salesperson.rules.allowed_categories
    if not allowed or vehicle.category in allowed:
        return _factor(config.category_allowed, "CATEGORY_ALLOWED", category=category)

    return _factor(config.category_blocked, "CATEGORY_BLOCKED", category=category)


def value_match(
    salesperson: Salesperson,
    vehicle: Vehicle,
    config: MatchingConfig = DEFAULT_CONFIG
) -> FactorScore:
    """Score the vehicle price against the salesperson's min/max value rules."""
    rules = salesperson.rules
    price = vehicle.sale_price

    if rules.min_value is not None and price < rules.min_value:
        return _factor(VALUE_OUT_OF_RANGE, "VALUE_BELOW_MIN", min_value=format_amount(rules.min_value))

    if rules.max_value is not None and price > rules.max_value:
        return _factor(VALUE_OUT_OF_RANGE, "VALUE_ABOVE_MAX", max_value=format_amount(rules.max_value))

    if rules.min_value is not None:
        return _factor(VALUE_IN_RANGE, "VALUE_IDEAL", level=salesperson.level.value)

    if rules.max_value is not None:
        return _factor(VALUE_IN_RANGE, "VALUE_IN_RANGE")

    return _factor(VALUE_IN_RANGE, "VALUE_UNRESTRICTED")


def level_match(
    salesperson: Salesperson,
    vehicle: Vehicle,
    config: MatchingConfig = DEFAULT_CONFIG
) -> FactorScore:
    """
    Score the salesperson's seniority against the vehicle's price band.

    Bands:
        price > high_value_min            -> SENIOR ideal, others get the high-value penalty
        price <= entry_value_max          -> JUNIOR ideal
        entry_value_max < price <= high   -> PLENO ideal
    """
    price = vehicle.sale_price
    level = salesperson.level

    if price > config.high_value_min:
        if level == Level.SENIOR:
            return _factor(
                config.level_ideal,
                "LEVEL_HIGH_VALUE_MATCH",
                level=level.value,
                high_value_min=format_amount(config.high_value_min)
            )
        return _factor(config.level_mismatch_high_value, "LEVEL_HIGH_VALUE_MISMATCH", level=level.value)

    if price <= config.entry_value_max:
        if level == Level.JUNIOR:
            return _factor(
                config.level_ideal,
                "LEVEL_ENTRY_MATCH",
                level=level.value,
                entry_value_max=format_amount(config.entry_value_max)
            )
        return _factor(config.level_mismatch, "LEVEL_ENTRY_MISMATCH", level=level.value)

    if level == Level.PLENO:
        return _factor(config.level_ideal, "LEVEL_MID_MATCH", level=level.value)
    return _factor(config.level_mismatch, "LEVEL_MID_MISMATCH", level=level.value)


def workload_match(
    salesperson: Salesperson,
    workload: WorkloadSnapshot,
    config: MatchingConfig = DEFAULT_CONFIG
) -> FactorScore:
    """
    Score remaining capacity: round((1 - open/capacity) * 100).

    The reason bucket (low/medium/high) is advisory; the score is continuous.

    Raises:
        ConfigurationError: If the salesperson's capacity is not positive
    """
    capacity = salesperson.max_lead_capacity
    if capacity <= 0:
        raise ConfigurationError(salesperson.id, f"max_lead_capacity must be positive, got {capacity}")

    open_leads = workload.open_leads
    occupancy = Decimal(open_leads) / Decimal(capacity)
    score = clamp_score(round_score(Decimal(capacity - open_leads) * HUNDRED / Decimal(capacity)))

    if occupancy < config.low_load_max:
        code = "LOAD_LOW"
    elif occupancy < config.medium_load_max:
        code = "LOAD_MEDIUM"
    else:
        code = "LOAD_HIGH"

    return _factor(score, code, open_leads=open_leads, capacity=capacity)


def conversion_rate(performance: PerformanceSnapshot) -> Decimal:
    """
    Conversion rate for the current month.

    Zero leads received gives a rate of 0. Converted counts above received
    (data skew between the two counts) are clamped to a rate of 1.
    """
    if performance.received <= 0:
        return Decimal(0)
    rate = Decimal(performance.converted) / Decimal(performance.received)
    if rate > 1:
        logger.debug(
            f"Converted ({performance.converted}) exceeds received ({performance.received}), clamping rate to 1"
        )
        return Decimal(1)
    return rate


def performance_match(
    performance: PerformanceSnapshot,
    config: MatchingConfig = DEFAULT_CONFIG
) -> FactorScore:
    """Score recent conversion rate: round(rate * 100)."""
    rate = conversion_rate(performance)
    score = clamp_score(round_score(rate * HUNDRED))

    if rate >= config.excellent_conversion_min:
        return _factor(score, "PERF_EXCELLENT", pct=score)
    if rate >= config.good_conversion_min:
        return _factor(score, "PERF_GOOD", pct=score)
    return _factor(score, "PERF_DEVELOPING")
