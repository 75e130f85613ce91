"""Unit tests for the five factor calculators."""
from decimal import Decimal

import pytest

from conftest import make_rules, make_salesperson, make_vehicle
from src.match.errors import ConfigurationError
from src.match.factors import (
    category_match,
    conversion_rate,
    level_match,
    performance_match,
    round_score,
    value_match,
    workload_match,
)
from src.match.models import Category, Level, PerformanceSnapshot, WorkloadSnapshot


class TestRounding:
    """Test half-up rounding used for every score."""

    def test_half_rounds_up(self):
        assert round_score(Decimal("92.5")) == 93
        assert round_score(Decimal("0.5")) == 1
        assert round_score(Decimal("13.5")) == 14

    def test_below_half_rounds_down(self):
        assert round_score(Decimal("92.49")) == 92
        assert round_score(Decimal("0")) == 0


class TestCategoryMatch:
    """Test category specialty and restriction scoring."""

    def test_specialist(self):
        result = category_match(make_salesperson(specialties=[Category.SUV]), make_vehicle())
        assert result.score == 100
        assert result.code == "CATEGORY_SPECIALIST"
        assert result.reason == "specialist in SUV"

    def test_no_restriction_gets_partial_credit(self):
        salesperson = make_salesperson(specialties=[Category.SEDAN])
        result = category_match(salesperson, make_vehicle())
        assert result.score == 50
        assert result.reason == "not a specialist but may serve SUV"

    def test_allowed_category_gets_partial_credit(self):
        salesperson = make_salesperson(
            specialties=[Category.SEDAN],
            rules=make_rules(allowed=[Category.SEDAN, Category.SUV])
        )
        assert category_match(salesperson, make_vehicle()).score == 50

    def test_disallowed_category(self):
        salesperson = make_salesperson(specialties=[Category.SEDAN], rules=make_rules(allowed=[Category.SEDAN]))
        result = category_match(salesperson, make_vehicle())
        assert result.score == 0
        assert result.code == "CATEGORY_BLOCKED"
        assert result.reason == "SUV not permitted"

    def test_specialty_wins_over_restriction(self):
        salesperson = make_salesperson(specialties=[Category.SUV], rules=make_rules(allowed=[Category.SEDAN]))
        assert category_match(salesperson, make_vehicle()).score == 100

    def test_missing_specialties_and_rules(self):
        """Absent specialties and rules mean no restriction, never an error."""
        salesperson = make_salesperson(specialties=None, rules=None)
        assert salesperson.specialties == frozenset()
        assert category_match(salesperson, make_vehicle()).score == 50


class TestValueMatch:
    """Test min/max value gates."""

    def test_no_rules(self):
        result = value_match(make_salesperson(rules=None), make_vehicle())
        assert result.score == 100
        assert result.reason == "no value restrictions"

    def test_empty_rules(self):
        result = value_match(make_salesperson(rules=make_rules()), make_vehicle())
        assert result.score == 100
        assert result.code == "VALUE_UNRESTRICTED"

    def test_below_minimum(self):
        salesperson = make_salesperson(rules=make_rules(min_value="150000"))
        result = value_match(salesperson, make_vehicle(price="120000"))
        assert result.score == 0
        assert result.reason == "below minimum value (150,000)"

    def test_above_maximum(self):
        salesperson = make_salesperson(rules=make_rules(max_value="80000.50"))
        result = value_match(salesperson, make_vehicle(price="120000"))
        assert result.score == 0
        assert result.reason == "above maximum value (80,000.50)"

    def test_minimum_satisfied(self):
        salesperson = make_salesperson(level=Level.SENIOR, rules=make_rules(min_value="100000"))
        result = value_match(salesperson, make_vehicle(price="120000"))
        assert result.score == 100
        assert result.reason == "ideal value for SENIOR"

    def test_maximum_satisfied(self):
        salesperson = make_salesperson(rules=make_rules(max_value="150000"))
        result = value_match(salesperson, make_vehicle(price="120000"))
        assert result.score == 100
        assert result.reason == "value within range"

    def test_bounds_are_inclusive(self):
        salesperson = make_salesperson(rules=make_rules(min_value="120000", max_value="120000"))
        assert value_match(salesperson, make_vehicle(price="120000")).score == 100

    def test_zero_minimum_is_a_configured_bound(self):
        salesperson = make_salesperson(rules=make_rules(min_value="0"))
        assert value_match(salesperson, make_vehicle()).code == "VALUE_IDEAL"


class TestLevelMatch:
    """Test level/price band scoring."""

    @pytest.mark.parametrize("level,expected", [
        (Level.SENIOR, 100),
        (Level.PLENO, 20),
        (Level.JUNIOR, 20),
    ])
    def test_high_value_band(self, level, expected):
        result = level_match(make_salesperson(level=level), make_vehicle(price="100000.01"))
        assert result.score == expected

    @pytest.mark.parametrize("level,expected", [
        (Level.JUNIOR, 100),
        (Level.PLENO, 50),
        (Level.SENIOR, 50),
    ])
    def test_entry_band(self, level, expected):
        result = level_match(make_salesperson(level=level), make_vehicle(price="50000"))
        assert result.score == expected

    @pytest.mark.parametrize("level,expected", [
        (Level.PLENO, 100),
        (Level.JUNIOR, 50),
        (Level.SENIOR, 50),
    ])
    def test_mid_band(self, level, expected):
        result = level_match(make_salesperson(level=level), make_vehicle(price="100000"))
        assert result.score == expected

    def test_band_reasons_name_level(self):
        senior = level_match(make_salesperson(level=Level.SENIOR), make_vehicle(price="120000"))
        assert senior.reason == "SENIOR for values above 100,000"
        junior = level_match(make_salesperson(level=Level.JUNIOR), make_vehicle(price="120000"))
        assert junior.reason == "JUNIOR for high value vehicle"
        entry = level_match(make_salesperson(level=Level.JUNIOR), make_vehicle(price="30000"))
        assert entry.reason == "JUNIOR for values up to 50,000"


class TestWorkloadMatch:
    """Test continuous workload scoring and advisory buckets."""

    def test_low_workload(self):
        result = workload_match(make_salesperson(capacity=10), WorkloadSnapshot(open_leads=1))
        assert result.score == 90
        assert result.code == "LOAD_LOW"
        assert result.reason == "low workload (1/10)"

    def test_medium_workload(self):
        result = workload_match(make_salesperson(capacity=10), WorkloadSnapshot(open_leads=3))
        assert result.score == 70
        assert result.code == "LOAD_MEDIUM"

    def test_high_workload(self):
        result = workload_match(make_salesperson(capacity=10), WorkloadSnapshot(open_leads=7))
        assert result.score == 30
        assert result.reason == "high workload (7/10)"

    def test_score_is_continuous(self):
        result = workload_match(make_salesperson(capacity=3), WorkloadSnapshot(open_leads=1))
        assert result.score == 67

    def test_zero_capacity_fails_loudly(self):
        with pytest.raises(ConfigurationError) as exc_info:
            workload_match(make_salesperson(id="S9", capacity=0), WorkloadSnapshot(open_leads=0))
        assert exc_info.value.salesperson_id == "S9"


class TestPerformanceMatch:
    """Test month-to-date conversion scoring."""

    def test_excellent(self):
        result = performance_match(PerformanceSnapshot(received=10, converted=4))
        assert result.score == 40
        assert result.reason == "excellent conversion rate (40%)"

    def test_good(self):
        result = performance_match(PerformanceSnapshot(received=20, converted=4))
        assert result.score == 20
        assert result.reason == "good conversion rate (20%)"

    def test_developing(self):
        result = performance_match(PerformanceSnapshot(received=10, converted=1))
        assert result.score == 10
        assert result.reason == "conversion rate still developing"

    def test_zero_received_is_zero(self):
        """No leads this month scores 0 rather than failing."""
        assert conversion_rate(PerformanceSnapshot(received=0, converted=0)) == 0
        result = performance_match(PerformanceSnapshot(received=0, converted=0))
        assert result.score == 0
        assert result.code == "PERF_DEVELOPING"

    def test_converted_above_received_is_clamped(self):
        result = performance_match(PerformanceSnapshot(received=2, converted=5))
        assert result.score == 100


class TestCategoryValues:
    """Test category parsing."""

    def test_lookup_is_case_insensitive(self):
        """Test stored categories are matched regardless of case."""
        assert Category("esportivo") is Category.ESPORTIVO
        assert Category(" Caminhao_Leve ") is Category.CAMINHAO_LEVE

    def test_unknown_category_rejected(self):
        """Test a category outside inventory's set still fails."""
        with pytest.raises(ValueError):
            Category("SPACESHIP")
