"""Base class for the scalar state-space blocks."""
from blocks.base_block import BaseBlock
from blocks.block_kind import BlockPhase
from blocks.param_templates import state_space_params


class StateSpaceBaseBlock(BaseBlock):
    """
    Shared parameters and state for x' = Ax + Bu, y = Cx + Du with scalar
    coefficients. The output is held from the previous update.
    """

    @property
    def category(self):
        return "Control"

    @property
    def color(self):
        return "magenta"

    @property
    def params(self):
        return state_space_params()

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def init_state(self, payload, dt):
        return {"x": 0.0, "out": 0.0}

    def output(self, time, inputs, params, state, dtime):
        return state["out"]

    def _output_equation(self, params, x, u):
        return params["C"] * x + params["D"] * u
