from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar, safe_divisor


class DerivativeBlock(BaseBlock):
    """
    A block that calculates the derivative of a signal.
    """

    @property
    def kind(self):
        return BlockKind.DERIVATIVE

    @property
    def block_name(self):
        return "Deriv"

    @property
    def category(self):
        return "Math"

    @property
    def color(self):
        return "lime_green"

    @property
    def doc(self):
        return (
            "Time Derivative (du/dt)."
            "\n\nBackward difference (u - u_prev) / dt, published one tick"
            "\nlater so the block never forms a zero-delay path."
            "\n\nWarning:"
            "\nDerivative is sensitive to noise. Use with a low-pass filter if possible."
        )

    @property
    def params(self):
        return {}

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def init_state(self, payload, dt):
        return {"prev": 0.0, "out": 0.0}

    def output(self, time, inputs, params, state, dtime):
        return state["out"]

    def update(self, time, inputs, params, state, dtime):
        u = get_scalar(inputs, 0)
        state["out"] = (u - state["prev"]) / safe_divisor(dtime)
        state["prev"] = u
