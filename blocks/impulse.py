from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase


class ImpulseBlock(BaseBlock):
    """
    Discrete approximation of a Dirac impulse: a single sample of height
    amp/dt at the tick closest to the impulse time, so its area is ``amp``.
    """

    @property
    def kind(self):
        return BlockKind.IMPULSE

    @property
    def block_name(self):
        return "Impulse"

    @property
    def category(self):
        return "Sources"

    @property
    def color(self):
        return "blue"

    @property
    def params(self):
        return {
            "time": {"type": "float", "default": 0.0, "doc": "Time of the impulse."},
            "amp": {"type": "float", "default": 1.0, "doc": "Impulse area."},
        }

    @property
    def inputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SOURCE

    def output(self, time, inputs, params, state, dtime):
        if abs(time - params["time"]) <= dtime / 2.0:
            return params["amp"] / max(dtime, 1e-6)
        return 0.0
