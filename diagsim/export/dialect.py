"""
Target-language syntax used by the block rules.

:class:`Dialect` is the small vocabulary (expressions, assignments,
conditionals, array shifts, RK4 call) the rules in
:mod:`diagsim.export.block_rules` are written against. Each exporter
provides a concrete dialect.
"""

from typing import Dict, List, Sequence

INDENT = "    "


def indent(lines: Sequence[str], level: int = 1, unit: str = INDENT) -> List[str]:
    prefix = unit * level
    return [prefix + line if line else line for line in lines]


class Dialect:
    """Expression and statement syntax of one target language."""

    true = "True"
    false = "False"
    pi = "math.pi"
    functions: Dict[str, str] = {}

    def num(self, value) -> str:
        text = repr(float(value))
        return f"({text})" if text.startswith("-") else text

    def integer(self, value) -> str:
        return str(int(value))

    def fn(self, name: str, *args: str) -> str:
        return f"{self.functions.get(name, name)}({', '.join(args)})"

    def item(self, ref: str, index) -> str:
        return f"{ref}[{index}]"

    def out(self, handle: int) -> str:
        return f"o[{handle}]"

    def valid(self, handle: int) -> str:
        return f"v[{handle}]"

    def state(self, name: str) -> str:
        raise NotImplementedError

    def external(self, name: str) -> str:
        raise NotImplementedError

    def publish(self, name: str, value: str) -> List[str]:
        raise NotImplementedError

    def cond(self, test: str, if_true: str, if_false: str) -> str:
        raise NotImplementedError

    def all_of(self, tests: Sequence[str]) -> str:
        raise NotImplementedError

    def either(self, first: str, second: str) -> str:
        raise NotImplementedError

    def negate(self, test: str) -> str:
        raise NotImplementedError

    def assign(self, target: str, expr: str) -> str:
        raise NotImplementedError

    def add_assign(self, target: str, expr: str) -> str:
        raise NotImplementedError

    def local(self, name: str, expr: str) -> str:
        raise NotImplementedError

    def comment(self, text: str) -> str:
        raise NotImplementedError

    def if_block(self, test: str, body: Sequence[str]) -> List[str]:
        raise NotImplementedError

    def scope(self, body: Sequence[str]) -> List[str]:
        raise NotImplementedError

    def shift_right(self, ref: str, length: int) -> List[str]:
        raise NotImplementedError

    def shift_left(self, ref: str, length: int) -> List[str]:
        raise NotImplementedError

    def lcg(self, ref: str) -> str:
        raise NotImplementedError

    def const_vector(self, name: str, values: Sequence[float]) -> str:
        raise NotImplementedError

    def const_matrix(self, name: str, rows: Sequence[Sequence[float]]) -> str:
        raise NotImplementedError

    def rk4(self, ref: str, a_name: str, b_name: str, order: int, u: str) -> List[str]:
        raise NotImplementedError


