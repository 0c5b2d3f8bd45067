from blocks.block_kind import BlockKind
from blocks.input_helpers import get_scalar
from blocks.statespace_base import StateSpaceBaseBlock


class StateSpaceBlock(StateSpaceBaseBlock):
    """
    Continuous scalar state-space block, forward Euler.
    """

    @property
    def kind(self):
        return BlockKind.STATE_SPACE

    @property
    def block_name(self):
        return "StateSpace"

    @property
    def doc(self):
        return (
            "Continuous State-Space Model (scalar)."
            "\n\nx' = A*x + B*u"
            "\ny  = C*x + D*u"
            "\n\nThe state is advanced with forward Euler each step."
        )

    def update(self, time, inputs, params, state, dtime):
        u = get_scalar(inputs, 0)
        state["x"] += dtime * (params["A"] * state["x"] + params["B"] * u)
        state["out"] = self._output_equation(params, state["x"], u)
