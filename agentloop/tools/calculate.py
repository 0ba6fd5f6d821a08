"""Arithmetic on numbers, without evaluating arbitrary code."""

import ast
import math
import operator
import re
from collections.abc import Callable

from .base import Tool

_ALLOWED_CHARS = re.compile(r"^[0-9+\-*/%.()\s]+$")
_MAX_EXPONENT = 1000
_MAX_DIGITS = 1000
_MAX_RESULT = 10**_MAX_DIGITS

_BINARY_OPERATORS: dict[type[ast.operator], Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPERATORS: dict[type[ast.unaryop], Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


class CalculateTool(Tool):
    name = "calculate"
    description = (
        "Evaluates mathematical expressions with support for basic "
        "operators (+, -, *, /, %, **) and parentheses. "
        "Example: 4 * 7 / 3"
    )

    def call(self, input: str) -> str:
        expression = input.strip()
        if not expression or not _ALLOWED_CHARS.match(expression):
            return (
                "Invalid expression. Only numbers and basic operators "
                "(+, -, *, /, %, **, (, )) are allowed."
            )
        try:
            tree = ast.parse(expression, mode='eval')
            value = _evaluate(tree.body)
            if isinstance(value, complex):
                return (
                    "Error calculating expression: "
                    "result is not a real number"
                )
            return str(value)
        except SyntaxError:
            return f"Invalid expression: {expression}"
        except ZeroDivisionError:
            return "Error calculating expression: Division by zero"
        except (ValueError, OverflowError) as e:
            return f"Error calculating expression: {e}"


def _evaluate(node: ast.expr) -> float:
    match node:
        case ast.Constant(value=int() | float() as value):
            return value
        case ast.BinOp(left=left, op=op, right=right) if (
            type(op) in _BINARY_OPERATORS
        ):
            lhs, rhs = _evaluate(left), _evaluate(right)
            if isinstance(op, ast.Pow):
                _check_power(lhs, rhs)
            result = _BINARY_OPERATORS[type(op)](lhs, rhs)
            if isinstance(result, int) and abs(result) >= _MAX_RESULT:
                raise ValueError("result too large")
            return result
        case ast.UnaryOp(op=op, operand=operand) if (
            type(op) in _UNARY_OPERATORS
        ):
            return _UNARY_OPERATORS[type(op)](_evaluate(operand))
        case _:
            raise ValueError(
                f"unsupported element: {ast.dump(node)}"
            )


def _check_power(base: float, exponent: float) -> None:
    """Rejects powers whose result would exceed _MAX_DIGITS digits,
    before computing them."""
    if abs(exponent) > _MAX_EXPONENT:
        raise ValueError(f"exponent too large: {exponent}")
    if isinstance(exponent, complex):
        return
    if abs(base) > 1 and exponent > 0:
        if exponent * math.log10(abs(base)) > _MAX_DIGITS:
            raise ValueError("result too large")
