"""License expression parsing on top of the license-expression library.

Expressions are parsed with the SPDX licensing table, which yields
``AND``/``OR`` nodes over ``LicenseSymbol`` and ``LicenseWithExceptionSymbol``
leaves. The legacy ``/`` separator is read as OR.
"""
from __future__ import annotations

from typing import Iterator

from license_expression import (
    AND,
    OR,
    ExpressionError,
    LicenseExpression,
    LicenseSymbol,
    LicenseWithExceptionSymbol,
)

from dependency_policy.analysis.classification import spdx_licensing

__all__ = [
    "AND",
    "OR",
    "LicenseExpressionError",
    "LicenseSymbol",
    "LicenseWithExceptionSymbol",
    "iter_leaves",
    "parse_expression",
]


class LicenseExpressionError(ValueError):
    """Raised when a license expression cannot be parsed."""

    def __init__(self, expression: str, message: str) -> None:
        super().__init__(f"Invalid license expression '{expression}': {message}")
        self.expression = expression


def parse_expression(expression: str) -> LicenseExpression:
    """Parse a license expression into a tree.

    Args:
        expression: Expression such as "MIT OR (Apache-2.0 WITH LLVM-exception)".

    Returns:
        Root node of the parsed tree.

    Raises:
        LicenseExpressionError: If the expression is empty or malformed.
    """
    text = expression.replace("/", " OR ")
    try:
        parsed = spdx_licensing.parse(text)
    except ExpressionError as e:
        raise LicenseExpressionError(expression, str(e)) from e
    if parsed is None:
        raise LicenseExpressionError(expression, "expression is empty")
    return parsed


def iter_leaves(node: LicenseExpression) -> Iterator[LicenseSymbol]:
    """Yield the license symbol of every leaf, left to right.

    For ``WITH`` leaves the license operand is yielded.
    """
    if isinstance(node, LicenseWithExceptionSymbol):
        yield node.license_symbol
    elif isinstance(node, LicenseSymbol):
        yield node
    else:
        for arg in node.args:
            yield from iter_leaves(arg)
