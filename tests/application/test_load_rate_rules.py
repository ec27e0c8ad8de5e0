"""Unit tests for LoadRateRulesUseCase."""

from decimal import Decimal

import pytest

from app.core.config import Settings
from app.rate_engine.application.exceptions import InvalidRateRulesError
from app.rate_engine.application.use_cases.load_rate_rules import LoadRateRulesUseCase
from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair


@pytest.fixture
def settings() -> Settings:
    """Create settings independent of the environment."""
    return Settings(
        _env_file=None,
        preferred_exchange="Coingecko",
        rate_rules_script="",
        global_multiplier=Decimal("1"),
    )


@pytest.fixture
def use_case(settings: Settings) -> LoadRateRulesUseCase:
    """Create the use case with explicit settings."""
    return LoadRateRulesUseCase(settings)


class TestLoadRateRulesUseCase:
    """Tests for LoadRateRulesUseCase."""

    def test_execute_parses_given_script(self, use_case: LoadRateRulesUseCase) -> None:
        """Test loading an explicit script."""
        rules = use_case.execute("BTC_USD = kraken(BTC_USD);\nX_X = 1;")

        assert list(rules.rules) == [CurrencyPair("BTC", "USD"), CurrencyPair("X", "X")]

    def test_execute_falls_back_to_default_script(self, use_case: LoadRateRulesUseCase) -> None:
        """Test that the preferred exchange prices every pair by default."""
        rules = use_case.execute()

        assert str(rules) == "X_X = coingecko(X_X);"

    def test_blank_script_uses_default(self, use_case: LoadRateRulesUseCase) -> None:
        """Test that whitespace is treated as no script."""
        rules = use_case.execute("   \n")

        assert str(rules) == "X_X = coingecko(X_X);"

    def test_execute_uses_configured_script(self) -> None:
        """Test that a configured script wins over the default."""
        settings = Settings(_env_file=None, rate_rules_script="BTC_USD = 2;")

        rules = LoadRateRulesUseCase(settings).execute()

        assert str(rules) == "BTC_USD = 2;"

    def test_execute_uses_configured_multiplier(self) -> None:
        """Test the configured global multiplier."""
        settings = Settings(_env_file=None, global_multiplier=Decimal("1.05"))

        rules = LoadRateRulesUseCase(settings).execute("X_X = 1;")

        assert rules.global_multiplier == Decimal("1.05")

    def test_explicit_multiplier_overrides_settings(self, use_case: LoadRateRulesUseCase) -> None:
        """Test an explicit multiplier argument."""
        rules = use_case.execute("X_X = 1;", global_multiplier=Decimal("2"))

        assert rules.global_multiplier == Decimal("2")

    def test_execute_raises_on_invalid_rules(self, use_case: LoadRateRulesUseCase) -> None:
        """Test that validation errors are reported with their codes."""
        # Act & Assert
        with pytest.raises(InvalidRateRulesError) as exc_info:
            use_case.execute("BTC_USD = foo; BTC_USD = 1;")

        assert exc_info.value.code == "INVALID_RATE_RULES"
        assert exc_info.value.errors == ["InvalidCurrencyIdentifier"]

    def test_execute_raises_on_duplicate_pair(self, use_case: LoadRateRulesUseCase) -> None:
        """Test that duplicate definitions are rejected."""
        with pytest.raises(InvalidRateRulesError) as exc_info:
            use_case.execute("BTC_USD = 1; BTC_USD = 2;")

        assert exc_info.value.errors == ["DuplicateCurrencyPair"]

    def test_execute_raises_on_syntax_error(self, use_case: LoadRateRulesUseCase) -> None:
        """Test that syntax errors are wrapped."""
        with pytest.raises(InvalidRateRulesError) as exc_info:
            use_case.execute("BTC_USD = (1")

        assert exc_info.value.errors == []
        assert "line 1" in exc_info.value.message

    def test_execute_raises_on_invalid_multiplier(self, use_case: LoadRateRulesUseCase) -> None:
        """Test that a non-positive multiplier is rejected."""
        with pytest.raises(InvalidRateRulesError):
            use_case.execute("X_X = 1;", global_multiplier=Decimal("0"))
