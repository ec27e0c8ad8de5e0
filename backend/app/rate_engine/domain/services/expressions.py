"""Expression and statement tree used by every stage of the rule pipeline.

Nodes are frozen dataclasses. Rewriting stages never mutate a tree; they
build a new one, so normalized sub-expressions can be shared between rules.

Two node kinds only appear after normalization:
- PairRef: an identifier that names a currency pair
- ExchangeName: the callee of an exchange call, lowercased

Calls whose callee starts with ``ERR_`` are error markers inserted by the
engine itself (e.g. ``ERR_NO_RULE_MATCH(BTC_USD)``).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Final, Iterator, Union

from app.rate_engine.domain.value_objects.currency_pair import CurrencyPair

ERROR_PREFIX: Final[str] = "ERR_"

ARITHMETIC_OPERATORS: Final[frozenset[str]] = frozenset({"+", "-", "*", "/"})
UNARY_OPERATORS: Final[frozenset[str]] = frozenset({"+", "-"})


@dataclass(frozen=True)
class Number:
    """Numeric literal, kept exact as a Decimal."""

    value: Decimal


@dataclass(frozen=True)
class Name:
    """Identifier as written in the script, before normalization."""

    identifier: str


@dataclass(frozen=True)
class PairRef:
    """Identifier that refers to a currency pair."""

    pair: CurrencyPair


@dataclass(frozen=True)
class ExchangeName:
    """Callee of an exchange call (e.g. ``kraken`` in ``kraken(BTC_USD)``)."""

    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Expression"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Parenthesized:
    """Explicit grouping added when a sub-expression is spliced in."""

    expression: "Expression"


@dataclass(frozen=True)
class Call:
    callee: "Expression"
    args: tuple["Expression", ...]

    @property
    def callee_name(self) -> str:
        return render(self.callee)

    @property
    def is_error_marker(self) -> bool:
        return self.callee_name.upper().startswith(ERROR_PREFIX)


Expression = Union[Number, Name, PairRef, ExchangeName, UnaryOp, BinaryOp, Parenthesized, Call]


@dataclass(frozen=True)
class Assignment:
    """``target = value`` statement.

    Attributes:
        target: The assigned expression (a PairRef once normalized).
        value: The defining expression.
        position: (line, column) of ``value`` in the script text, used to
            order rules by where they appear.
        operator: "=" for simple assignments, "+=" etc. for augmented ones.
    """

    target: Expression
    value: Expression
    position: tuple[int, int]
    operator: str = "="


@dataclass(frozen=True)
class ExpressionStatement:
    expression: Expression


Statement = Union[Assignment, ExpressionStatement]


def error_marker(code: str, *args: Expression) -> Call:
    """Build an ``ERR_<code>(args...)`` marker call."""
    return Call(ExchangeName(f"{ERROR_PREFIX}{code}"), tuple(args))


def iter_nodes(expression: Expression) -> Iterator[Expression]:
    """Yield every node of the tree, parents before children."""
    yield expression
    if isinstance(expression, UnaryOp):
        yield from iter_nodes(expression.operand)
    elif isinstance(expression, BinaryOp):
        yield from iter_nodes(expression.left)
        yield from iter_nodes(expression.right)
    elif isinstance(expression, Parenthesized):
        yield from iter_nodes(expression.expression)
    elif isinstance(expression, Call):
        yield from iter_nodes(expression.callee)
        for arg in expression.args:
            yield from iter_nodes(arg)


def contains_binary_operation(expression: Expression) -> bool:
    return any(isinstance(node, BinaryOp) for node in iter_nodes(expression))


# =============================================================================
# Rendering
# =============================================================================

_ATOM_PRECEDENCE: Final[int] = 10
_UNARY_PRECEDENCE: Final[int] = 3
_BINARY_PRECEDENCE: Final[dict[str, int]] = {
    "+": 1,
    "-": 1,
    "*": 2,
    "/": 2,
    "%": 2,
    "**": 4,
}


def _precedence(expression: Expression) -> int:
    if isinstance(expression, BinaryOp):
        return _BINARY_PRECEDENCE.get(expression.op, 0)
    if isinstance(expression, UnaryOp):
        return _UNARY_PRECEDENCE
    if isinstance(expression, Number) and expression.value.is_signed():
        return _UNARY_PRECEDENCE
    return _ATOM_PRECEDENCE


def _render_operand(expression: Expression, min_precedence: int) -> str:
    text = render(expression)
    if _precedence(expression) < min_precedence:
        return f"({text})"
    return text


def render(expression: Expression) -> str:
    """Render an expression back to rule script syntax.

    Parentheses are emitted where the tree shape needs them, so rendering
    then parsing yields the same tree.
    """
    if isinstance(expression, Number):
        return str(expression.value)
    if isinstance(expression, Name):
        return expression.identifier
    if isinstance(expression, PairRef):
        return str(expression.pair)
    if isinstance(expression, ExchangeName):
        return expression.name
    if isinstance(expression, Parenthesized):
        return f"({render(expression.expression)})"
    if isinstance(expression, Call):
        args = ", ".join(render(arg) for arg in expression.args)
        return f"{render(expression.callee)}({args})"
    if isinstance(expression, UnaryOp):
        operand = _render_operand(expression.operand, _UNARY_PRECEDENCE)
        return f"{expression.op}{operand}"
    if isinstance(expression, BinaryOp):
        precedence = _BINARY_PRECEDENCE.get(expression.op, 0)
        left = _render_operand(expression.left, precedence)
        # Right operands of equal precedence keep their grouping: a - (b - c)
        right = _render_operand(expression.right, precedence + 1)
        return f"{left} {expression.op} {right}"
    raise TypeError(f"Unknown expression node: {expression!r}")
