from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar, safe_divisor


class PIDBlock(BaseBlock):
    """
    Parallel PID controller acting on the error signal.

    The control output is computed in the update phase and published on the
    next tick, so a PID inside a feedback loop never creates an algebraic
    cycle.
    """

    @property
    def kind(self):
        return BlockKind.PID

    @property
    def block_name(self):
        return "PID"

    @property
    def category(self):
        return "Control"

    @property
    def color(self):
        return "magenta"

    @property
    def doc(self):
        return (
            "PID Controller."
            "\n\nu = Kp*e + Ki*∫e dt + Kd*de/dt"
            "\n\nParameters:"
            "\n- Kp: Proportional gain."
            "\n- Ki: Integral gain."
            "\n- Kd: Derivative gain (backward difference)."
            "\n\nInput: error signal. Output: control action, one tick behind."
        )

    @property
    def params(self):
        return {
            "kp": {"type": "float", "default": 1.0, "doc": "Proportional gain."},
            "ki": {"type": "float", "default": 0.0, "doc": "Integral gain."},
            "kd": {"type": "float", "default": 0.0, "doc": "Derivative gain."},
        }

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def init_state(self, payload, dt):
        return {"integral": 0.0, "prev": 0.0, "out": 0.0}

    def output(self, time, inputs, params, state, dtime):
        return state["out"]

    def update(self, time, inputs, params, state, dtime):
        e = get_scalar(inputs, 0)
        state["integral"] += e * dtime
        derivative = (e - state["prev"]) / safe_divisor(dtime)
        state["out"] = params["kp"] * e + params["ki"] * state["integral"] + params["kd"] * derivative
        state["prev"] = e
