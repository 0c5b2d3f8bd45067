"""
Python exporter - renders a compiled diagram as a standalone Python module.

The module needs only the standard library. It exposes
``init_model_state()`` and ``run_step(state, inputs, outputs, t, dt)`` and,
unless disabled, a ``main()`` that replays an input CSV (``-i``) for
``-t`` seconds and writes the named outputs as CSV (``-o`` or stdout).
"""

import logging
from typing import List

from diagsim.expressions import sanitize_identifier
from diagsim.export.base_exporter import CodeExporter
from diagsim.export.dialect import INDENT, Dialect, indent

logger = logging.getLogger(__name__)


class PythonDialect(Dialect):
    true = "True"
    false = "False"
    pi = "math.pi"
    functions = {"sin": "math.sin", "abs": "abs", "min": "min", "max": "max"}

    def state(self, name):
        return f'state["{name}"]'

    def external(self, name):
        return f'float(inputs.get("{name}", 0.0))'

    def publish(self, name, value):
        return [f'outputs["{name}"] = {value}']

    def cond(self, test, if_true, if_false):
        return f"({if_true} if {test} else {if_false})"

    def all_of(self, tests):
        return " and ".join(tests)

    def either(self, first, second):
        return f"{first} or {second}"

    def negate(self, test):
        return f"not {test}"

    def assign(self, target, expr):
        return f"{target} = {expr}"

    def add_assign(self, target, expr):
        return f"{target} += {expr}"

    def local(self, name, expr):
        return f"{name} = {expr}"

    def comment(self, text):
        return "# " + " ".join(str(text).split())

    def if_block(self, test, body):
        return [f"if {test}:"] + indent(body)

    def scope(self, body):
        return list(body)

    def shift_right(self, ref, length):
        if length < 2:
            return []
        return [f"for i in range({length - 1}, 0, -1):"] + indent([f"{ref}[i] = {ref}[i - 1]"])

    def shift_left(self, ref, length):
        if length < 2:
            return []
        return [f"for i in range({length - 1}):"] + indent([f"{ref}[i] = {ref}[i + 1]"])

    def lcg(self, ref):
        return f"(1664525 * {ref} + 1013904223) & 0xFFFFFFFF"

    def const_vector(self, name, values):
        return f"{name} = [{', '.join(repr(float(v)) for v in values)}]"

    def const_matrix(self, name, rows):
        inner = ", ".join("[" + ", ".join(repr(float(v)) for v in row) + "]" for row in rows)
        return f"{name} = [{inner}]"

    def rk4(self, ref, a_name, b_name, order, u):
        return [f"{ref} = _rk4({a_name}, {b_name}, {ref}, {u}, dt)"]


RK4_HELPER = '''
def _rk4(A, B, x, u, dt):
    n = len(x)

    def f(z):
        return [sum(A[i][j] * z[j] for j in range(n)) + B[i] * u for i in range(n)]

    k1 = f(x)
    k2 = f([x[i] + 0.5 * dt * k1[i] for i in range(n)])
    k3 = f([x[i] + 0.5 * dt * k2[i] for i in range(n)])
    k4 = f([x[i] + dt * k3[i] for i in range(n)])
    return [x[i] + (dt / 6.0) * (k1[i] + 2.0 * k2[i] + 2.0 * k3[i] + k4[i]) for i in range(n)]
'''

MAIN_TEMPLATE = '''
def _cell(text):
    try:
        return float(text) if text not in (None, "") else 0.0
    except ValueError:
        return 0.0


def _read_input_csv(path):
    if not path:
        return [], []
    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        header = reader.fieldnames or []
        time_column = "t" if "t" in header else "time" if "time" in header else None
        if time_column is None:
            raise SystemExit(f"{path}: missing 't' or 'time' column")
        times = []
        rows = []
        for row in reader:
            times.append(_cell(row.get(time_column)))
            rows.append({name: _cell(row.get(name)) for name in INPUT_NAMES})
    return times, rows


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the generated model")
    parser.add_argument("-t", dest="duration", type=float, default=DURATION)
    parser.add_argument("-i", dest="input", default=None)
    parser.add_argument("-o", dest="output", default=None)
    args = parser.parse_args(argv)

    state = init_model_state()
    times, rows = _read_input_csv(args.input)
    idx = 0
    out_f = open(args.output, "w", newline="") if args.output else sys.stdout
    try:
        writer = csv.writer(out_f, lineterminator="\\n")
        writer.writerow(["t"] + OUTPUT_NAMES)
        t = 0.0
        while t <= args.duration + 1e-9:
            inputs = {}
            if times:
                while idx + 1 < len(times) and times[idx + 1] <= t + 1e-9:
                    idx += 1
                inputs = rows[idx]
            outputs = {}
            run_step(state, inputs, outputs, t)
            writer.writerow([f"{t:.6f}"] + [f"{outputs.get(name, 0.0):.6f}" for name in OUTPUT_NAMES])
            t += DT
    finally:
        if args.output:
            out_f.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
'''


def _variable_name(name: str) -> str:
    return f"var_{sanitize_identifier(name)}"


class PythonExporter(CodeExporter):
    """Exports a compiled diagram as a Python module."""

    language = "python"
    dialect = PythonDialect()

    def _header(self) -> List[str]:
        compiled = self.compiled
        lines = [
            '"""',
            "Generated by diagsim from a block diagram.",
            "",
            f"{len(compiled.nodes)} blocks, dt = {compiled.dt!r}.",
            '"""',
            "",
        ]
        imports = ["import math"]
        if self.include_main:
            imports = ["import argparse", "import csv", "import math", "import sys"]
        lines += imports + [""]
        lines += [
            f"DT = {compiled.dt!r}",
            f"DURATION = {self.duration!r}",
            f"MAX_ITERATIONS = {self.max_iterations}",
            f"BLOCK_COUNT = {len(compiled.nodes)}",
            f"INPUT_NAMES = {list(compiled.input_names)!r}",
            f"OUTPUT_NAMES = {list(compiled.output_names)!r}",
            "",
        ]
        variables = self._variables()
        if variables:
            lines += ["# Diagram variables"] + variables + [""]
        if self.constants:
            lines += ["# Realized transfer functions"] + self.constants + [""]
        return lines

    def _variables(self) -> List[str]:
        lines = []
        for name, value in self.compiled.constants.items():
            if name in ("pi", "e") or name.startswith("\\"):
                continue
            ident = _variable_name(name)
            if not ident.isidentifier():
                continue
            lines.append(f"{ident} = {value!r}")
        return lines

    def _init_state(self) -> List[str]:
        lines = ["def init_model_state():", INDENT + '"""Fresh model state at t = 0."""']
        if not self.fields:
            return lines + indent(["return {}"])
        entries = []
        for state_field in self.fields:
            entries.append(f'"{state_field.name}": {self._initial_value(state_field.init)},')
        return lines + indent(["return {"] + indent(entries) + ["}"])

    @staticmethod
    def _initial_value(init) -> str:
        if isinstance(init, list):
            if all(v == 0.0 for v in init):
                return f"[0.0] * {len(init)}"
            return "[" + ", ".join(repr(float(v)) for v in init) + "]"
        if isinstance(init, int):
            return str(init)
        return repr(float(init))

    def _run_step(self) -> List[str]:
        body: List[str] = [
            '"""Run one tick at time ``t``; named outputs are written into ``outputs``."""',
            "inputs = inputs or {}",
            "if outputs is None:",
            "    outputs = {}",
            "if dt is None:",
            "    dt = DT",
            "o = [0.0] * BLOCK_COUNT",
            "v = [False] * BLOCK_COUNT",
            "",
            "# output phase",
        ]
        body += self.output_phase()
        body += ["", "# algebraic loop"]
        body += self.loop_seeds()
        loop_body = ["updated = False"] + self.algebraic_pass() + ["if not updated:", "    break"]
        body += ["for _ in range(MAX_ITERATIONS):"] + indent(loop_body)
        body += ["", "# sink phase"] + self.sink_phase()
        body += ["", "# update phase"] + self.update_phase()
        body += ["return outputs"]
        return ["def run_step(state, inputs=None, outputs=None, t=0.0, dt=None):"] + indent(body)

    def generate(self) -> str:
        """Return the generated module source."""
        for node in self.unsupported_blocks():
            logger.warning(f"Block '{node.block_id}' ({node.block_type}) is exported as a constant 0.0")

        lines = self._header()
        if "rk4" in self.helpers:
            lines += RK4_HELPER.strip("\n").split("\n") + ["", ""]
        lines += self._init_state() + ["", ""]
        lines += self._run_step()
        source = "\n".join(lines) + "\n"
        if self.include_main:
            source += "\n" + MAIN_TEMPLATE
        return source

