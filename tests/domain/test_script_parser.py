"""Unit tests for script parsing, identifier normalization and the rule table."""

from decimal import Decimal

import pytest

from app.rate_engine.domain.exceptions import RateRulesParseError, RateRulesValidationError
from app.rate_engine.domain.services.expressions import (
    Assignment,
    BinaryOp,
    Call,
    ExchangeName,
    ExpressionStatement,
    Name,
    Number,
    PairRef,
    UnaryOp,
    render,
)
from app.rate_engine.domain.services.pair_normalizer import normalize_statements
from app.rate_engine.domain.services.rate_rules import RateRules
from app.rate_engine.domain.services.rule_table import build_rule_table
from app.rate_engine.domain.services.script_parser import parse_expression, parse_script
from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair
from app.rate_engine.domain.value_objects.rate_rules_error import RateRulesError


def pair(text: str) -> CurrencyPair:
    return CurrencyPair.parse(text)


class TestParseScript:
    """Tests for parse_script."""

    def test_parses_simple_assignment(self) -> None:
        """Test a single rule with a numeric literal."""
        statements = parse_script("BTC_USD = 100;")

        assert statements == [Assignment(Name("BTC_USD"), Number(Decimal("100")), (1, 10))]

    def test_keeps_decimal_literals_exact(self) -> None:
        """Test that 0.1 is not read through a float."""
        statements = parse_script("X_X = 0.1 * 3")

        assert statements[0].value == BinaryOp("*", Number(Decimal("0.1")), Number(Decimal("3")))

    def test_parses_statements_separated_by_semicolons_and_newlines(self) -> None:
        """Test both statement separators."""
        statements = parse_script("BTC_USD = 1; BTC_EUR = 2;\nX_X = 3")

        targets = [s.target for s in statements]
        assert targets == [Name("BTC_USD"), Name("BTC_EUR"), Name("X_X")]

    def test_ignores_leading_indentation(self) -> None:
        """Test that indented scripts parse."""
        script = """
            BTC_USD = kraken(BTC_USD);
              BTC_X = BTC_USD * USD_X;
        """

        statements = parse_script(script)

        assert len(statements) == 2

    def test_records_expression_position(self) -> None:
        """Test that positions follow script order across lines."""
        statements = parse_script("BTC_USD = 1;\nX_X = 2")

        assert statements[0].position == (1, 10)
        assert statements[1].position == (2, 6)

    def test_parses_exchange_call(self) -> None:
        """Test call syntax."""
        statements = parse_script("BTC_USD = kraken(BTC_USD)")

        assert statements[0].value == Call(Name("kraken"), (Name("BTC_USD"),))

    def test_parses_unary_minus(self) -> None:
        """Test unary operators."""
        statements = parse_script("BTC_USD = -kraken(BTC_USD)")

        assert statements[0].value == UnaryOp("-", Call(Name("kraken"), (Name("BTC_USD"),)))

    def test_keeps_augmented_assignment_operator(self) -> None:
        """Test that augmented assignments are parsed but marked."""
        statements = parse_script("BTC_USD += 1")

        assert statements[0].operator == "+="

    def test_parses_expression_statement(self) -> None:
        """Test a bare expression statement."""
        statements = parse_script("kraken(BTC_USD)")

        assert statements == [ExpressionStatement(Call(Name("kraken"), (Name("BTC_USD"),)))]

    def test_chained_assignment_defines_each_target(self) -> None:
        """Test A = B = expr."""
        statements = parse_script("BTC_USD = BTC_EUR = 5")

        assert [s.target for s in statements] == [Name("BTC_USD"), Name("BTC_EUR")]
        assert all(s.value == Number(Decimal("5")) for s in statements)

    def test_empty_script_has_no_statements(self) -> None:
        """Test an empty script."""
        assert parse_script("") == []

    def test_syntax_error_reports_location(self) -> None:
        """Test that invalid syntax raises with a line number."""
        with pytest.raises(RateRulesParseError) as exc_info:
            parse_script("BTC_USD = 1;\nBTC_EUR = 1 +")

        assert exc_info.value.line == 2
        assert "line 2" in exc_info.value.message

    @pytest.mark.parametrize(
        "script",
        [
            "if BTC_USD: BTC_EUR = 1",
            "BTC_USD = 'abc'",
            "BTC_USD = True",
            "BTC_USD = 0x10",
            "BTC_USD = kraken.rate",
            "BTC_USD = kraken(pair=BTC_USD)",
            "BTC_USD = 1 << 2",
            "BTC_USD = [1]",
            "import os",
        ],
    )
    def test_rejects_constructs_outside_rule_language(self, script: str) -> None:
        """Test that unsupported Python constructs are parse errors."""
        with pytest.raises(RateRulesParseError):
            parse_script(script)

    def test_line_comment_before_rule(self) -> None:
        """Test a script that starts with a // comment line."""
        statements = parse_script("// pricing\nBTC_USD = 100;")

        assert statements == [Assignment(Name("BTC_USD"), Number(Decimal("100")), (2, 10))]

    def test_double_slash_starts_comment_not_floor_division(self) -> None:
        """Test that // after an expression comments out the rest of the line."""
        statements = parse_script("BTC_USD = 4 // 2;\nX_X = 1")

        assert [s.value for s in statements] == [Number(Decimal("4")), Number(Decimal("1"))]

    def test_block_comment_keeps_line_numbers(self) -> None:
        """Test that a multi-line /* */ comment does not shift positions."""
        script = "/* rates\n   from kraken */ BTC_USD = kraken(BTC_USD);\nX_X = 2 /* inline */ * 3"

        statements = parse_script(script)

        assert statements[0].position == (2, 10)
        assert statements[1].value == BinaryOp("*", Number(Decimal("2")), Number(Decimal("3")))
        assert statements[1].position[0] == 3

    def test_comment_markers_inside_block_comment(self) -> None:
        """Test that // inside a block comment is part of the comment."""
        statements = parse_script("/* see https://example.com */ BTC_USD = 1;")

        assert [s.target for s in statements] == [Name("BTC_USD")]

    def test_unterminated_block_comment_is_parse_error(self) -> None:
        """Test that an unclosed /* is not silently accepted."""
        with pytest.raises(RateRulesParseError):
            parse_script("/* pricing\nBTC_USD = 1;")


class TestParseExpression:
    """Tests for parse_expression."""

    def test_parses_single_expression(self) -> None:
        """Test expression parsing without a statement."""
        expression = parse_expression("2 * kraken(BTC_USD)")

        assert expression == BinaryOp(
            "*",
            Number(Decimal("2")),
            Call(Name("kraken"), (Name("BTC_USD"),)),
        )

    def test_rejects_statement(self) -> None:
        """Test that an assignment is not an expression."""
        with pytest.raises(RateRulesParseError):
            parse_expression("BTC_USD = 1")

    def test_ignores_comments(self) -> None:
        """Test an expression followed by a line comment."""
        expression = parse_expression("kraken(BTC_USD) // spot")

        assert expression == Call(Name("kraken"), (Name("BTC_USD"),))


class TestRender:
    """Tests for rendering expressions back to script text."""

    @pytest.mark.parametrize(
        "text",
        [
            "2 * kraken(BTC_USD)",
            "(1 + 2) * 3",
            "1 - (2 - 3)",
            "1 / (2 * 3)",
            "-(1 + 2)",
            "kraken(BTC_USD) * 1.01",
        ],
    )
    def test_render_keeps_grouping(self, text: str) -> None:
        """Test that rendering emits the parentheses the tree needs."""
        assert render(parse_expression(text)) == text

    def test_render_drops_redundant_parentheses(self) -> None:
        """Test that grouping implied by precedence is not repeated."""
        assert render(parse_expression("(1 * 2) + 3")) == "1 * 2 + 3"


class TestNormalizeStatements:
    """Tests for identifier normalization."""

    def test_canonicalizes_pairs_and_exchange_names(self) -> None:
        """Test case normalization of pairs and callees."""
        statements, errors = normalize_statements(parse_script("btc_usd = Kraken(btc_usd);"))

        assert errors == []
        assert statements[0].target == PairRef(pair("BTC_USD"))
        assert statements[0].value == Call(ExchangeName("kraken"), (PairRef(pair("BTC_USD")),))

    def test_invalid_identifier(self) -> None:
        """Test that non-pair identifiers are reported."""
        _, errors = normalize_statements(parse_script("BTC_USD = foo;"))

        assert errors == [RateRulesError.INVALID_CURRENCY_IDENTIFIER]

    def test_collects_every_error(self) -> None:
        """Test that normalization does not stop at the first error."""
        _, errors = normalize_statements(parse_script("BTC_USD = foo + bar;"))

        assert errors == [
            RateRulesError.INVALID_CURRENCY_IDENTIFIER,
            RateRulesError.INVALID_CURRENCY_IDENTIFIER,
        ]

    def test_nested_invocation(self) -> None:
        """Test that a call inside call arguments is rejected."""
        _, errors = normalize_statements(parse_script("BTC_USD = kraken(bitstamp(BTC_USD));"))

        assert errors == [RateRulesError.NESTED_INVOCATION]

    def test_pair_shaped_callee_is_invalid_exchange_name(self) -> None:
        """Test that a pair cannot be called."""
        _, errors = normalize_statements(parse_script("BTC_USD = BTC_EUR(BTC_USD);"))

        assert errors == [RateRulesError.INVALID_EXCHANGE_NAME]

    def test_non_identifier_callee_is_invalid_exchange_name(self) -> None:
        """Test that only plain names can be called."""
        _, errors = normalize_statements(parse_script("BTC_USD = kraken(BTC_USD)(BTC_EUR);"))

        assert errors == [RateRulesError.INVALID_EXCHANGE_NAME]

    def test_non_pair_assignment_target_is_invalid(self) -> None:
        """Test that a rule target must be a pair."""
        _, errors = normalize_statements(parse_script("kraken = 1"))

        assert errors == [RateRulesError.INVALID_CURRENCY_IDENTIFIER]


class TestBuildRuleTable:
    """Tests for the rule table."""

    def test_keeps_only_simple_pair_assignments(self) -> None:
        """Test that other statements are not rules."""
        statements, _ = normalize_statements(
            parse_script("BTC_USD = 1; kraken(BTC_USD); BTC_EUR += 2; X_X = 3;")
        )

        rules, errors = build_rule_table(statements)

        assert errors == []
        assert list(rules) == [pair("BTC_USD"), pair("X_X")]
        assert rules[pair("X_X")].expression == Number(Decimal("3"))

    def test_duplicate_pair_is_reported(self) -> None:
        """Test that defining a pair twice is an error."""
        statements, _ = normalize_statements(parse_script("BTC_USD = 1;\nbtc_usd = 2;"))

        _, errors = build_rule_table(statements)

        assert errors == [RateRulesError.DUPLICATE_CURRENCY_PAIR]


class TestRateRulesParse:
    """Tests for building a RateRules table from a script."""

    def test_parse_builds_rules_in_script_order(self) -> None:
        """Test that rules keep script order."""
        rules = RateRules.parse("X_X = 1; BTC_USD = 2; BTC_X = 3;")

        assert list(rules.rules) == [pair("X_X"), pair("BTC_USD"), pair("BTC_X")]

    def test_parse_raises_with_all_validation_errors(self) -> None:
        """Test that validation errors are raised together."""
        with pytest.raises(RateRulesValidationError) as exc_info:
            RateRules.parse("BTC_USD = foo; BTC_EUR = kraken(bitstamp(BTC_EUR));")

        assert exc_info.value.errors == [
            RateRulesError.INVALID_CURRENCY_IDENTIFIER,
            RateRulesError.NESTED_INVOCATION,
        ]

    def test_parse_rejects_duplicate_pairs(self) -> None:
        """Test that duplicates fail construction."""
        with pytest.raises(RateRulesValidationError) as exc_info:
            RateRules.parse("BTC_USD = 1; BTC_USD = 2;")

        assert exc_info.value.errors == [RateRulesError.DUPLICATE_CURRENCY_PAIR]

    def test_parse_raises_parse_error_for_bad_syntax(self) -> None:
        """Test that syntax errors propagate."""
        with pytest.raises(RateRulesParseError):
            RateRules.parse("BTC_USD = (1")

    def test_parse_commented_script(self, empty_rate_lookup) -> None:
        """Test a stored script with both comment forms."""
        script = """
            /* Fallback prices */
            BTC_USD = 100; // fixed
            // BTC_USD = 200;
            BTC_EUR = BTC_USD / 2;
        """

        rules = RateRules.parse(script)

        assert str(rules) == "BTC_USD = 100;\nBTC_EUR = BTC_USD / 2;"
        result = rules.get_rule_for(pair("BTC_EUR")).evaluate(empty_rate_lookup)
        assert result.value == Decimal("50")

    def test_str_renders_normalized_script(self) -> None:
        """Test the text form of a rule table."""
        rules = RateRules.parse("btc_usd = Kraken(btc_usd);\nX_X = 2 * (bitstamp(X_X) + 1)")

        assert str(rules) == "BTC_USD = kraken(BTC_USD);\nX_X = 2 * (bitstamp(X_X) + 1);"

    def test_rules_view_is_read_only(self) -> None:
        """Test that the rule table cannot be modified."""
        rules = RateRules.parse("BTC_USD = 1;")

        with pytest.raises(TypeError):
            rules.rules[pair("BTC_EUR")] = rules.rules[pair("BTC_USD")]  # type: ignore[index]
