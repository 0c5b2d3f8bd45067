"""
Per-kind code rules shared by the Python and C exporters.

Each rule receives a :class:`BlockContext` and writes the block's state
fields, output statements and update statements through the context's
dialect, returning the output expression. The arithmetic is written in the
same order the block classes use so all backends round the same way.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Set, Union

from blocks.block_kind import BlockKind
from blocks.input_helpers import CLOCK_TOLERANCE
from blocks.noise import LCG_MAX
from diagsim.engine.system_compiler import CompiledDiagram, CompiledNode
from diagsim.export.dialect import Dialect

logger = logging.getLogger(__name__)


@dataclass
class StateField:
    """A persistent state variable of one block."""
    name: str
    init: Union[float, int, List[float]] = 0.0
    ctype: str = "double"

    @property
    def is_array(self) -> bool:
        return isinstance(self.init, list)


@dataclass
class BlockCode:
    """Rendered code of one block."""
    node: CompiledNode
    value: str = "0.0"
    output: List[str] = field(default_factory=list)
    update: List[str] = field(default_factory=list)
    fields: List[StateField] = field(default_factory=list)
    constants: List[str] = field(default_factory=list)
    helpers: Set[str] = field(default_factory=set)
    model_order: int = 0


class BlockContext:
    """Collects the code of one block while its rule runs."""

    def __init__(self, node: CompiledNode, dialect: Dialect, compiled: CompiledDiagram):
        self.node = node
        self.d = dialect
        self.compiled = compiled
        self.code = BlockCode(node=node)

    @property
    def p(self):
        return self.node.payload

    def num(self, name: str) -> str:
        """Payload entry as a literal."""
        return self.d.num(self.p[name])

    def inp(self, port: int = 0) -> str:
        driver = self.node.drivers.get(port)
        if driver is None:
            return self.d.num(self.node.impl.input_fallback)
        return self.d.out(driver)

    def state(self, name: str, init: Union[float, int, List[float]] = 0.0, ctype: str = "double") -> str:
        """Declare a state field and return a reference to it."""
        full_name = f"{name}_{self.node.handle}"
        self.code.fields.append(StateField(full_name, init, ctype))
        return self.d.state(full_name)

    def const_name(self, name: str) -> str:
        return f"{name}_{self.node.handle}"

    def due(self, next_ref: str) -> str:
        return f"t + {self.d.num(CLOCK_TOLERANCE)} >= {next_ref}"

    def clip(self, value: str, lower: str, upper: str) -> str:
        return self.d.fn("min", upper, self.d.fn("max", lower, value))

    def safe_dt(self) -> str:
        return self.d.fn("max", "dt", self.d.num(1e-6))


# Sources

def _constant(c: BlockContext) -> str:
    return c.num("value")


def _step(c: BlockContext) -> str:
    return c.d.cond(f"t >= {c.num('stepTime')}", "1.0", "0.0")


def _ramp(c: BlockContext) -> str:
    start = c.num("start")
    return c.d.cond(f"t < {start}", "0.0", f"(t - {start}) * {c.num('slope')}")


def _impulse(c: BlockContext) -> str:
    d = c.d
    offset = d.fn("abs", f"t - {c.num('time')}")
    return d.cond(f"{offset} <= dt / 2.0", f"{c.num('amp')} / {c.safe_dt()}", "0.0")


def _sine(c: BlockContext) -> str:
    d = c.d
    phase = f"2.0 * {d.pi} * {c.num('freq')} * t + {c.num('phase')}"
    return f"{c.num('amp')} * {d.fn('sin', phase)}"


def _chirp(c: BlockContext) -> str:
    d = c.d
    phase = f"2.0 * {d.pi} * ({c.num('f0')} * t + 0.5 * {c.num('k')} * t * t)"
    return f"{c.num('amp')} * {d.fn('sin', phase)}"


def _noise(c: BlockContext) -> str:
    rng = c.state("rng", int(c.p["seed"]), ctype="uint32")
    c.code.output.append(c.d.assign(rng, c.d.lcg(rng)))
    return f"{c.num('amp')} * (({rng} / {c.d.num(LCG_MAX)}) * 2.0 - 1.0)"


# Algebraic

def _gain(c: BlockContext) -> str:
    return f"{c.inp(0)} * {c.num('gain')}"


def _sum(c: BlockContext) -> str:
    impl = c.node.impl
    terms = "".join(f" + {c.inp(port)} * {c.d.num(impl.sign(c.p, port))}" for port in c.node.ports)
    return f"(0.0{terms})"


def _mult(c: BlockContext) -> str:
    factors = "".join(f" * {c.inp(port)}" for port in c.node.ports)
    return f"(1.0{factors})"


def _saturation(c: BlockContext) -> str:
    return c.clip(c.inp(0), c.num("min"), c.num("max"))


SWITCH_OPERATORS = {"ge": ">=", "gt": ">", "ne": "!="}


def _switch(c: BlockContext) -> str:
    op = SWITCH_OPERATORS[c.p["condition"]]
    return c.d.cond(f"{c.inp(1)} {op} {c.num('threshold')}", c.inp(0), c.inp(2))


# Continuous and memory

def _integrator(c: BlockContext) -> str:
    x = c.state("x", float(c.p["initial"]))
    c.code.update.append(c.d.add_assign(x, f"{c.inp(0)} * dt"))
    return x


def _derivative(c: BlockContext) -> str:
    prev = c.state("prev")
    out = c.state("out")
    c.code.update += [
        c.d.assign(out, f"({c.inp(0)} - {prev}) / {c.safe_dt()}"),
        c.d.assign(prev, c.inp(0)),
    ]
    return out


def _transport_delay(c: BlockContext) -> str:
    d = c.d
    steps = c.p["steps"]
    size = steps + 1
    buf = c.state("buf", [0.0] * size)
    idx = c.state("idx", 0, ctype="int")
    c.code.update += [
        d.assign(d.item(buf, f"({idx} + {steps}) % {size}"), c.inp(0)),
        d.assign(idx, f"({idx} + 1) % {size}"),
    ]
    return d.item(buf, idx)


def _rate_limiter(c: BlockContext) -> str:
    y = c.state("y")
    lower = f"{y} - {c.num('fall')} * dt"
    upper = f"{y} + {c.num('rise')} * dt"
    c.code.update.append(c.d.assign(y, c.clip(c.inp(0), lower, upper)))
    return y


def _backlash(c: BlockContext) -> str:
    d = c.d
    y = c.state("y")
    u = c.inp(0)
    half = d.num(c.p["width"] / 2.0)
    c.code.update += d.if_block(f"{u} > {y} + {half}", [d.assign(y, f"{u} - {half}")])
    c.code.update += d.if_block(f"{u} < {y} - {half}", [d.assign(y, f"{u} + {half}")])
    return y


def _low_pass(c: BlockContext) -> str:
    x = c.state("x")
    c.code.update.append(c.d.add_assign(x, f"dt * {c.num('wc')} * ({c.inp(0)} - {x})"))
    return x


def _high_pass(c: BlockContext) -> str:
    x = c.state("x")
    out = c.state("out")
    c.code.update += [
        c.d.add_assign(x, f"dt * {c.num('wc')} * ({c.inp(0)} - {x})"),
        c.d.assign(out, f"{c.inp(0)} - {x}"),
    ]
    return out


def _pid(c: BlockContext) -> str:
    d = c.d
    e = c.inp(0)
    integral = c.state("integral")
    prev = c.state("prev")
    out = c.state("out")
    deriv = f"deriv_{c.node.handle}"
    c.code.update += [
        d.add_assign(integral, f"{e} * dt"),
        d.local(deriv, f"({e} - {prev}) / {c.safe_dt()}"),
        d.assign(out, f"{c.num('kp')} * {e} + {c.num('ki')} * {integral} + {c.num('kd')} * {deriv}"),
        d.assign(prev, e),
    ]
    return out


def _transfer_function(c: BlockContext) -> str:
    d = c.d
    model = c.p["model"]
    if model is None:
        c.code.output.append(d.comment("zero denominator: no realization, outputs 0.0"))
        return "0.0"
    u = c.inp(0)
    if model.order == 0:
        return f"{d.num(model.D)} * {u}"

    n = model.order
    x = c.state("tf_x", [0.0] * n)
    a_name = c.const_name("TF_A")
    b_name = c.const_name("TF_B")
    c.code.constants += [
        d.const_matrix(a_name, model.A.tolist()),
        d.const_vector(b_name, model.B.tolist()),
    ]
    c.code.helpers.add("rk4")
    c.code.model_order = n
    c.code.update += d.rk4(x, a_name, b_name, n, u)

    value = " + ".join(f"{d.num(coeff)} * {d.item(x, i)}" for i, coeff in enumerate(model.C))
    if model.has_feedthrough:
        value += f" + {d.num(model.D)} * {u}"
    return f"({value})"


def _state_space(c: BlockContext) -> str:
    x = c.state("x")
    out = c.state("out")
    u = c.inp(0)
    c.code.update += [
        c.d.add_assign(x, f"dt * ({c.num('A')} * {x} + {c.num('B')} * {u})"),
        c.d.assign(out, f"{c.num('C')} * {x} + {c.num('D')} * {u}"),
    ]
    return out


# Sampled

def _clocked(c: BlockContext, body: List[str]) -> List[str]:
    """Wrap ``body`` in the sample clock test and advance the clock."""
    next_ref = c.state("next")
    return c.d.if_block(c.due(next_ref), body + [c.d.add_assign(next_ref, c.num("ts"))])


def _discrete_state_space(c: BlockContext) -> str:
    d = c.d
    x = c.state("x")
    out = c.state("out")
    u = c.inp(0)
    c.code.update += _clocked(c, [
        d.assign(x, f"{c.num('A')} * {x} + {c.num('B')} * {u}"),
        d.assign(out, f"{c.num('C')} * {x} + {c.num('D')} * {u}"),
    ])
    return out


def _discrete_tf(c: BlockContext) -> str:
    d = c.d
    model = c.p["model"]
    x_len = len(model.num)
    y_len = len(model.den) - 1
    x_hist = c.state("xh", [0.0] * x_len)
    y_hist = c.state("yh", [0.0] * y_len) if y_len else None
    last = c.state("last")
    y = f"y_{c.node.handle}"

    recurrence = "0.0"
    for i, coeff in enumerate(model.num):
        recurrence += f" + {d.num(coeff)} * {d.item(x_hist, i)}"
    for i, coeff in enumerate(model.den[1:]):
        recurrence += f" - {d.num(coeff)} * {d.item(y_hist, i)}"

    body = d.shift_right(x_hist, x_len)
    body.append(d.assign(d.item(x_hist, 0), c.inp(0)))
    body.append(d.local(y, recurrence))
    if y_hist is not None:
        body += d.shift_right(y_hist, y_len)
        body.append(d.assign(d.item(y_hist, 0), y))
    body.append(d.assign(last, y))
    c.code.update += _clocked(c, body)
    return last


def _zero_order_hold(c: BlockContext) -> str:
    held = c.state("held")
    c.code.update += _clocked(c, [c.d.assign(held, c.inp(0))])
    return held


def _first_order_hold(c: BlockContext) -> str:
    d = c.d
    prev = c.state("prev")
    last = c.state("last")
    last_time = c.state("last_time")
    slope = c.state("slope")
    c.code.update += _clocked(c, [
        d.assign(prev, last),
        d.assign(last, c.inp(0)),
        d.assign(last_time, "t"),
        d.assign(slope, f"({last} - {prev}) / {c.num('ts')}"),
    ])
    return f"{last} + {slope} * (t - {last_time})"


def _discrete_delay(c: BlockContext) -> str:
    d = c.d
    steps = c.p["steps"]
    buf = c.state("buf", [0.0] * steps)
    last = c.state("last")
    body = d.shift_left(buf, steps)
    body += [
        d.assign(d.item(buf, steps - 1), c.inp(0)),
        d.assign(last, d.item(buf, 0)),
    ]
    c.code.update += _clocked(c, body)
    return last


# Routing and sinks

def _label_source(c: BlockContext) -> str:
    if c.node.external:
        return c.d.external(c.node.label)
    return c.inp(0)


def _passthrough(c: BlockContext) -> str:
    return c.inp(0)


def _unsupported(c: BlockContext) -> str:
    c.code.output.append(c.d.comment(f"unsupported block type '{c.node.block_type}': outputs 0.0"))
    return "0.0"


BLOCK_RULES: Dict[BlockKind, Callable[[BlockContext], str]] = {
    BlockKind.CONSTANT: _constant,
    BlockKind.STEP: _step,
    BlockKind.RAMP: _ramp,
    BlockKind.IMPULSE: _impulse,
    BlockKind.SINE: _sine,
    BlockKind.CHIRP: _chirp,
    BlockKind.NOISE: _noise,
    BlockKind.GAIN: _gain,
    BlockKind.SUM: _sum,
    BlockKind.MULT: _mult,
    BlockKind.SATURATION: _saturation,
    BlockKind.SWITCH: _switch,
    BlockKind.INTEGRATOR: _integrator,
    BlockKind.DERIVATIVE: _derivative,
    BlockKind.DELAY: _transport_delay,
    BlockKind.RATE: _rate_limiter,
    BlockKind.BACKLASH: _backlash,
    BlockKind.LPF: _low_pass,
    BlockKind.HPF: _high_pass,
    BlockKind.PID: _pid,
    BlockKind.TF: _transfer_function,
    BlockKind.STATE_SPACE: _state_space,
    BlockKind.DDELAY: _discrete_delay,
    BlockKind.ZOH: _zero_order_hold,
    BlockKind.FOH: _first_order_hold,
    BlockKind.DTF: _discrete_tf,
    BlockKind.DSTATE_SPACE: _discrete_state_space,
    BlockKind.LABEL_SOURCE: _label_source,
    BlockKind.LABEL_SINK: _passthrough,
    BlockKind.SCOPE: _passthrough,
    BlockKind.FILE_SINK: _passthrough,
    BlockKind.UNSUPPORTED: _unsupported,
}

_missing = set(BlockKind) - set(BLOCK_RULES)
if _missing:
    raise RuntimeError(f"No code rule for block kinds: {sorted(k.value for k in _missing)}")


def render_block(node: CompiledNode, dialect: Dialect, compiled: CompiledDiagram) -> BlockCode:
    """Render one compiled block in ``dialect``."""
    context = BlockContext(node, dialect, compiled)
    context.code.value = BLOCK_RULES[node.kind](context)
    return context.code
