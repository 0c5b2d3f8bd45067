from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar


class IntegratorBlock(BaseBlock):
    """
    Integrates the input signal over time.

    The input is held over each step, so RK4 on ``x' = u`` reduces exactly to
    ``x += u * dt``; that closed form is used directly.
    """

    @property
    def kind(self):
        return BlockKind.INTEGRATOR

    @property
    def block_name(self):
        return "Integrator"

    @property
    def category(self):
        return "Control"

    @property
    def color(self):
        return "magenta"

    @property
    def doc(self):
        return "Integrates the input signal over time."

    @property
    def params(self):
        return {
            "initial": {"type": "float", "default": 0.0, "doc": "Initial condition."},
        }

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def init_state(self, payload, dt):
        return {"x": payload["initial"]}

    def output(self, time, inputs, params, state, dtime):
        return state["x"]

    def update(self, time, inputs, params, state, dtime):
        state["x"] += get_scalar(inputs, 0) * dtime
