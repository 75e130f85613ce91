"""Unit tests for matching constants, MatchingConfig and Settings."""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.config import Settings
from src.match.rules import (
    AUTO_ASSIGN_MIN,
    DEFAULT_CONFIG,
    ENTRY_VALUE_MAX,
    FACTOR_WEIGHTS,
    HIGH_VALUE_MIN,
    MatchingConfig,
)


class TestDefaults:
    """Test documented default constants."""

    def test_weights_sum_to_one(self):
        assert sum(FACTOR_WEIGHTS.values()) == Decimal("1.00")

    def test_weights(self):
        assert FACTOR_WEIGHTS == {
            "category": Decimal("0.30"),
            "value": Decimal("0.25"),
            "level": Decimal("0.20"),
            "workload": Decimal("0.15"),
            "performance": Decimal("0.10"),
        }

    def test_thresholds(self):
        assert AUTO_ASSIGN_MIN == 80
        assert HIGH_VALUE_MIN == Decimal("100000")
        assert ENTRY_VALUE_MAX == Decimal("50000")

    def test_default_config_matches_constants(self):
        assert DEFAULT_CONFIG.weights == FACTOR_WEIGHTS
        assert DEFAULT_CONFIG.auto_assign_min == AUTO_ASSIGN_MIN
        assert DEFAULT_CONFIG.level_mismatch_high_value == 20
        assert DEFAULT_CONFIG.level_mismatch == 50


class TestConfigValidation:
    """Test MatchingConfig consistency checks."""

    def test_weights_must_sum_to_one(self):
        weights = dict(FACTOR_WEIGHTS, category=Decimal("0.40"))
        with pytest.raises(ValidationError):
            MatchingConfig(weights=weights)

    def test_weights_must_name_every_factor(self):
        weights = dict(FACTOR_WEIGHTS)
        del weights["performance"]
        weights["category"] = Decimal("0.40")
        with pytest.raises(ValidationError):
            MatchingConfig(weights=weights)

    def test_negative_weight_rejected(self):
        # Sums to 1.00 but carries a negative weight
        weights = dict(FACTOR_WEIGHTS, category=Decimal("0.50"), level=Decimal("-0.10"), performance=Decimal("0.20"))
        with pytest.raises(ValidationError):
            MatchingConfig(weights=weights)

    def test_band_order(self):
        with pytest.raises(ValidationError):
            MatchingConfig(entry_value_max=Decimal("150000"))

    def test_threshold_range(self):
        with pytest.raises(ValidationError):
            MatchingConfig(auto_assign_min=101)

    def test_config_is_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.auto_assign_min = 10


class TestSettings:
    """Test environment overrides."""

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = Settings()
        assert settings.match_auto_assign_min == 80
        assert settings.match_default_limit == 3
        assert settings.matching_config().auto_assign_min == 80

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MATCH_AUTO_ASSIGN_MIN", "90")
        monkeypatch.setenv("DB_PATH", str(tmp_path / "crm.duckdb"))
        settings = Settings()
        assert settings.matching_config().auto_assign_min == 90
        assert settings.duckdb_path == str(tmp_path / "crm.duckdb")


class TestReadOnlyWeights:
    """Test weights cannot change after validation."""

    def test_default_weights_are_read_only(self):
        """Test mutating the shared default config's weights fails."""
        with pytest.raises(TypeError):
            DEFAULT_CONFIG.weights["category"] = Decimal("0.90")
        assert sum(DEFAULT_CONFIG.weights.values()) == Decimal("1.00")

    def test_module_weights_are_read_only(self):
        """Test the module-level weight table is read-only."""
        with pytest.raises(TypeError):
            FACTOR_WEIGHTS["value"] = Decimal("0")

    def test_custom_weights_are_copied(self):
        """Test a config does not alias the caller's dict."""
        weights = dict(FACTOR_WEIGHTS)
        config = MatchingConfig(weights=weights)
        weights["category"] = Decimal("0.90")
        assert config.weights["category"] == Decimal("0.30")
        with pytest.raises(TypeError):
            config.weights["category"] = Decimal("0.90")
