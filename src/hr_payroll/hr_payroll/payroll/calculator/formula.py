from __future__ import annotations

import ast
import operator

from ...core.exceptions import FormulaError

BASIC_TOKEN = "basic"

_BINARY = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_MAX_LENGTH = 200


def evaluate_formula(expression: str, *, basic: float) -> float:
    """Evaluate a salary component formula.

    Only numeric literals, the token `basic`, `+ - * /`, unary signs and
    parentheses are accepted. Anything else raises FormulaError and is never
    executed.
    """

    text = (expression or "").strip()
    if not text:
        raise FormulaError("Formula is empty")
    if len(text) > _MAX_LENGTH:
        raise FormulaError("Formula is too long")

    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError:
        raise FormulaError(f"Invalid formula: {text!r}")

    return float(_eval(tree.body, basic=float(basic), source=text))


def _eval(node: ast.AST, *, basic: float, source: str) -> float:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FormulaError(f"Unsupported literal in formula: {source!r}")
        return node.value

    if isinstance(node, ast.Name):
        if node.id != BASIC_TOKEN:
            raise FormulaError(f"Unknown name {node.id!r} in formula")
        return basic

    if isinstance(node, ast.BinOp):
        op = _BINARY.get(type(node.op))
        if op is None:
            raise FormulaError(f"Unsupported operator in formula: {source!r}")
        left = _eval(node.left, basic=basic, source=source)
        right = _eval(node.right, basic=basic, source=source)
        try:
            return op(left, right)
        except ZeroDivisionError:
            raise FormulaError(f"Division by zero in formula: {source!r}")

    if isinstance(node, ast.UnaryOp):
        op = _UNARY.get(type(node.op))
        if op is None:
            raise FormulaError(f"Unsupported operator in formula: {source!r}")
        return op(_eval(node.operand, basic=basic, source=source))

    raise FormulaError(f"Unsupported expression in formula: {source!r}")
