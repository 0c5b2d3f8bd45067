"""
Parameter expression resolution.

Block parameters arrive as numbers, numeric strings, names of constants or
small arithmetic expressions such as ``"2*pi*fc"``. Expressions are parsed
with :mod:`ast` and walked by a restricted evaluator that only knows numeric
literals, named constants, arithmetic operators and a fixed table of real
math functions. Nothing is ever executed.

Every entry point here is total: an unknown name, a syntax error or a
non-finite result resolves to ``0.0``. The exporters rely on this to bake
identical constants into generated code.
"""

import ast
import logging
import math
import operator
import re
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

logger = logging.getLogger(__name__)

_BACKSLASH_NAME = re.compile(r"\\([A-Za-z]+)")
_UNSAFE_IDENTIFIER_CHARS = re.compile(r"[^A-Za-z0-9_]")

BUILTIN_CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
}

FUNCTIONS = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "atan2": math.atan2,
    "sinh": math.sinh,
    "cosh": math.cosh,
    "tanh": math.tanh,
    "exp": math.exp,
    "log": math.log,
    "log10": math.log10,
    "log2": math.log2,
    "sqrt": math.sqrt,
    "abs": abs,
    "floor": math.floor,
    "ceil": math.ceil,
    "pow": math.pow,
    "min": min,
    "max": max,
    "hypot": math.hypot,
}

# Constants reachable as math.<name> / Math.<name>
MODULE_CONSTANTS = {
    "pi": math.pi,
    "PI": math.pi,
    "e": math.e,
    "E": math.e,
    "tau": math.tau,
}
MODULE_PREFIXES = ("math", "Math")

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


class ExpressionError(ValueError):
    """Raised by :class:`ExpressionEvaluator` for expressions it cannot evaluate."""


class ExpressionEvaluator:
    """
    Evaluates a constrained arithmetic expression over a constants table.

    >>> ExpressionEvaluator({"k": 2.0}).evaluate("k * (1 + max(2, 3))")
    8.0
    """

    def __init__(self, constants: Mapping[str, float]):
        self.constants = constants

    def evaluate(self, text: str) -> float:
        source = _BACKSLASH_NAME.sub(r"\1", str(text)).strip()
        if not source:
            raise ExpressionError("empty expression")
        try:
            tree = ast.parse(source, mode="eval")
        except (SyntaxError, ValueError, RecursionError) as e:
            raise ExpressionError(f"invalid expression {text!r}") from e

        try:
            value = float(self._eval(tree.body))
        except (ArithmeticError, ValueError, TypeError, RecursionError) as e:
            raise ExpressionError(f"cannot evaluate {text!r}: {e}") from e

        if not math.isfinite(value):
            raise ExpressionError(f"{text!r} is not finite")
        return value

    def _eval(self, node: ast.AST) -> float:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
                raise ExpressionError(f"unsupported literal {node.value!r}")
            # floats only, so '**' can overflow instead of building huge ints
            return float(node.value)

        if isinstance(node, ast.Name):
            if node.id in self.constants:
                return float(self.constants[node.id])
            raise ExpressionError(f"unknown name '{node.id}'")

        if isinstance(node, ast.Attribute):
            if _is_module_prefix(node.value) and node.attr in MODULE_CONSTANTS:
                return MODULE_CONSTANTS[node.attr]
            raise ExpressionError("unsupported attribute access")

        if isinstance(node, ast.BinOp):
            op = _BINARY_OPERATORS.get(type(node.op))
            if op is None:
                raise ExpressionError(f"unsupported operator {type(node.op).__name__}")
            return op(self._eval(node.left), self._eval(node.right))

        if isinstance(node, ast.UnaryOp):
            op = _UNARY_OPERATORS.get(type(node.op))
            if op is None:
                raise ExpressionError(f"unsupported operator {type(node.op).__name__}")
            return op(self._eval(node.operand))

        if isinstance(node, ast.Call):
            func = _function_for(node.func)
            if node.keywords:
                raise ExpressionError("keyword arguments are not supported")
            args = [self._eval(arg) for arg in node.args]
            return func(*args)

        raise ExpressionError(f"unsupported syntax {type(node).__name__}")


def _is_module_prefix(node: ast.AST) -> bool:
    return isinstance(node, ast.Name) and node.id in MODULE_PREFIXES


def _function_for(node: ast.AST):
    if isinstance(node, ast.Name):
        name = node.id
    elif isinstance(node, ast.Attribute) and _is_module_prefix(node.value):
        name = node.attr
    else:
        raise ExpressionError("unsupported call target")
    if name not in FUNCTIONS:
        raise ExpressionError(f"unknown function '{name}'")
    return FUNCTIONS[name]


def _parse_float(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _finite_or_zero(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def build_constants(variables: Optional[Mapping[str, Any]] = None) -> Dict[str, float]:
    """
    Build the constants table for one run.

    The table is seeded with ``pi`` and ``e``; diagram variables override the
    seeds. Variable values may themselves be expressions over the seeds and
    earlier variables. A variable written ``\\name`` is also registered as
    ``name``.
    """
    constants: Dict[str, float] = dict(BUILTIN_CONSTANTS)
    for name, value in (variables or {}).items():
        key = str(name).strip()
        if not key:
            continue
        resolved = resolve_numeric(value, constants)
        constants[key] = resolved
        if key.startswith("\\") and len(key) > 1:
            constants[key[1:]] = resolved
    return constants


def resolve_numeric(value: Any, constants: Optional[Mapping[str, float]] = None) -> float:
    """
    Resolve a parameter value to a finite float; failures resolve to 0.0.

    Args:
        value: Number, numeric string, constant name or arithmetic expression.
        constants: Constants table (see :func:`build_constants`). Defaults to
                   the built-in ``pi``/``e`` table.

    Returns:
        The resolved value, or 0.0 if it cannot be resolved.
    """
    if value is None:
        return 0.0
    if isinstance(value, (bool, int, float, np.number)):
        return _finite_or_zero(value)

    text = str(value).strip()
    if not text:
        return 0.0

    direct = _parse_float(text)
    if direct is not None:
        return direct

    table = BUILTIN_CONSTANTS if constants is None else constants
    if text in table:
        return _finite_or_zero(table[text])
    if text.startswith("\\") and text[1:] in table:
        return _finite_or_zero(table[text[1:]])

    try:
        return ExpressionEvaluator(table).evaluate(text)
    except ExpressionError as e:
        logger.debug(f"Parameter {text!r} resolved to 0.0 ({e})")
        return 0.0


def resolve_list(value: Any, constants: Optional[Mapping[str, float]] = None) -> List[float]:
    """
    Resolve a coefficient list.

    Accepts a list/tuple/array, a single number, or a comma-separated string
    with optional surrounding brackets (``"[1, 2*a, 3]"``). Empty items in a
    string are skipped.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, np.ndarray)):
        return [resolve_numeric(item, constants) for item in value]
    if isinstance(value, (bool, int, float, np.number)):
        return [resolve_numeric(value, constants)]

    text = str(value).strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    items = [item.strip() for item in text.split(",")]
    return [resolve_numeric(item, constants) for item in items if item]


def sanitize_identifier(name: Any) -> str:
    """Replace every character outside [A-Za-z0-9_] with '_'."""
    return _UNSAFE_IDENTIFIER_CHARS.sub("_", str(name))
