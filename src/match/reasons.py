"""Human-readable reason generation."""
from decimal import Decimal
from typing import List

# Reason code -> template. Placeholders are filled from the factor calculators.
REASON_TEMPLATES = {
    # Category
    "CATEGORY_SPECIALIST": "specialist in {category}",
    "CATEGORY_ALLOWED": "not a specialist but may serve {category}",
    "CATEGORY_BLOCKED": "{category} not permitted",
    # Value
    "VALUE_BELOW_MIN": "below minimum value ({min_value})",
    "VALUE_ABOVE_MAX": "above maximum value ({max_value})",
    "VALUE_IDEAL": "ideal value for {level}",
    "VALUE_IN_RANGE": "value within range",
    "VALUE_UNRESTRICTED": "no value restrictions",
    # Level
    "LEVEL_HIGH_VALUE_MATCH": "{level} for values above {high_value_min}",
    "LEVEL_HIGH_VALUE_MISMATCH": "{level} for high value vehicle",
    "LEVEL_ENTRY_MATCH": "{level} for values up to {entry_value_max}",
    "LEVEL_ENTRY_MISMATCH": "{level} for entry value vehicle",
    "LEVEL_MID_MATCH": "{level} for mid range",
    "LEVEL_MID_MISMATCH": "{level} for mid range vehicle",
    # Workload
    "LOAD_LOW": "low workload ({open_leads}/{capacity})",
    "LOAD_MEDIUM": "medium workload ({open_leads}/{capacity})",
    "LOAD_HIGH": "high workload ({open_leads}/{capacity})",
    # Recent performance
    "PERF_EXCELLENT": "excellent conversion rate ({pct}%)",
    "PERF_GOOD": "good conversion rate ({pct}%)",
    "PERF_DEVELOPING": "conversion rate still developing",
}


def format_amount(value: Decimal) -> str:
    """
    Format a money amount with thousands separators.

    Whole amounts drop the cents: 80000 -> "80,000", 80000.5 -> "80,000.50".
    """
    value = Decimal(value)
    if value == value.to_integral_value():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def format_reason(code: str, **values) -> str:
    """
    Format a reason code into human-readable text.

    Args:
        code: Reason code (e.g., "CATEGORY_SPECIALIST", "LOAD_LOW")
        **values: Values for the template placeholders

    Returns:
        Human-readable reason string, or the code itself if unknown
    """
    template = REASON_TEMPLATES.get(code)
    if template is None:
        return code
    return template.format(**values)


def compose_reasons(reasons: List[str]) -> str:
    """Join reasons into a single line for CSV and log output."""
    return "; ".join(reasons)
