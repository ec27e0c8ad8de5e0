"""Parser turning rule script text into a statement list.

Rule scripts are written in plain infix arithmetic, which Python's own
grammar already covers, so the text is parsed with ``ast`` and the Python
tree is converted into the rule expression model. Constructs outside the
rule language are rejected here rather than carried along.

Scripts may carry ``// line`` and ``/* block */`` comments, which are
removed before parsing. As a consequence ``//`` is never floor division.

Example script::

    // Bitcoin from Kraken, everything else from Coingecko
    BTC_USD = kraken(BTC_USD);
    BTC_X = BTC_USD * USD_X;
    X_X = coingecko(X_X) * 1.01;
"""

import ast
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Final

from app.rate_engine.domain.exceptions import RateRulesParseError
from app.rate_engine.domain.services.expressions import (
    Assignment,
    BinaryOp,
    Call,
    Expression,
    ExpressionStatement,
    Name,
    Number,
    Statement,
    UnaryOp,
)

logger = logging.getLogger(__name__)

# % and ** parse fine but are rejected at evaluation time
_BINARY_OPERATORS: Final[dict[type, str]] = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.Mod: "%",
    ast.Pow: "**",
}

_UNARY_OPERATORS: Final[dict[type, str]] = {
    ast.UAdd: "+",
    ast.USub: "-",
    ast.Invert: "~",
}

_COMMENT_PATTERN: Final = re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL)


def _blank_comment(match: re.Match[str]) -> str:
    # Keep the newlines of block comments so error lines stay accurate
    newlines = match.group().count("\n")
    return "\n" * newlines if newlines else " "


def _prepare_source(script: str) -> str:
    source = _COMMENT_PATTERN.sub(_blank_comment, script)
    # Rule scripts have no blocks, so leading whitespace carries no meaning
    return "\n".join(line.lstrip() for line in source.splitlines())


def parse_script(script: str) -> list[Statement]:
    """Parse a rule script into its top-level statements.

    Args:
        script: Rule script text, statements separated by newlines or ``;``.

    Returns:
        The statements in script order.

    Raises:
        RateRulesParseError: If the text is not valid rule script syntax.
    """
    source = _prepare_source(script)
    try:
        module = ast.parse(source, mode="exec")
    except SyntaxError as e:
        raise RateRulesParseError(e.msg, line=e.lineno, offset=e.offset) from e
    except ValueError as e:
        raise RateRulesParseError(str(e)) from e

    converter = _Converter(source)
    statements: list[Statement] = []
    for node in module.body:
        statements.extend(converter.statement(node))

    logger.debug(f"Parsed rate rules script into {len(statements)} statements")
    return statements


def parse_expression(text: str) -> Expression:
    """Parse a single expression (e.g. ``2 * kraken(BTC_USD)``).

    Raises:
        RateRulesParseError: If the text is not a valid expression.
    """
    source = _prepare_source(text).strip()
    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as e:
        raise RateRulesParseError(e.msg, line=e.lineno, offset=e.offset) from e
    except ValueError as e:
        raise RateRulesParseError(str(e)) from e
    return _Converter(source).expression(tree.body)


class _Converter:
    """Converts Python syntax nodes into rule statements and expressions."""

    def __init__(self, source: str) -> None:
        self._source = source

    def _fail(self, node: ast.AST, reason: str) -> RateRulesParseError:
        return RateRulesParseError(
            reason,
            line=getattr(node, "lineno", None),
            offset=getattr(node, "col_offset", None),
        )

    def statement(self, node: ast.stmt) -> list[Statement]:
        if isinstance(node, ast.Assign):
            value = self.expression(node.value)
            position = (node.value.lineno, node.value.col_offset)
            # A = B = expr assigns the same expression to each target
            return [
                Assignment(self.expression(target), value, position)
                for target in node.targets
            ]
        if isinstance(node, ast.AugAssign):
            op = _BINARY_OPERATORS.get(type(node.op))
            if op is None:
                raise self._fail(node, f"unsupported operator {type(node.op).__name__}")
            return [
                Assignment(
                    self.expression(node.target),
                    self.expression(node.value),
                    (node.value.lineno, node.value.col_offset),
                    operator=f"{op}=",
                )
            ]
        if isinstance(node, ast.Expr):
            return [ExpressionStatement(self.expression(node.value))]
        if isinstance(node, ast.Pass):
            return []
        raise self._fail(node, f"unsupported statement {type(node).__name__}")

    def expression(self, node: ast.expr) -> Expression:
        if isinstance(node, ast.Constant):
            return self._number(node)
        if isinstance(node, ast.Name):
            return Name(node.id)
        if isinstance(node, ast.UnaryOp):
            op = _UNARY_OPERATORS.get(type(node.op))
            if op is None:
                raise self._fail(node, f"unsupported operator {type(node.op).__name__}")
            return UnaryOp(op, self.expression(node.operand))
        if isinstance(node, ast.BinOp):
            op = _BINARY_OPERATORS.get(type(node.op))
            if op is None:
                raise self._fail(node, f"unsupported operator {type(node.op).__name__}")
            return BinaryOp(op, self.expression(node.left), self.expression(node.right))
        if isinstance(node, ast.Call):
            if node.keywords:
                raise self._fail(node, "keyword arguments are not supported")
            return Call(
                self.expression(node.func),
                tuple(self.expression(arg) for arg in node.args),
            )
        raise self._fail(node, f"unsupported expression {type(node).__name__}")

    def _number(self, node: ast.Constant) -> Number:
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise self._fail(node, f"unsupported literal {node.value!r}")
        # Read the literal from the source so 0.1 stays exactly 0.1
        text = ast.get_source_segment(self._source, node)
        try:
            value = Decimal(text if text is not None else repr(node.value))
        except InvalidOperation:
            raise self._fail(node, f"unsupported numeric literal {text!r}") from None
        if not value.is_finite():
            raise self._fail(node, f"unsupported numeric literal {text!r}")
        return Number(value)
