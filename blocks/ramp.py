from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase


class RampBlock(BaseBlock):
    """
    Ramp source: zero until the start time, then rises with a constant slope.
    """

    @property
    def kind(self):
        return BlockKind.RAMP

    @property
    def block_name(self):
        return "Ramp"

    @property
    def category(self):
        return "Sources"

    @property
    def color(self):
        return "blue"

    @property
    def doc(self):
        return (
            "Ramp Signal."
            "\n\ny(t) = slope * (t - start) for t >= start, else 0."
            "\n\nParameters:"
            "\n- Slope: Rate of change (units/sec)."
            "\n- Start: Time at which the ramp begins."
        )

    @property
    def params(self):
        return {
            "slope": {"type": "float", "default": 1.0, "doc": "Rate of change (units/sec)."},
            "start": {"type": "float", "default": 0.0, "doc": "Start time of the ramp."},
        }

    @property
    def inputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SOURCE

    def output(self, time, inputs, params, state, dtime):
        start = params["start"]
        if time < start:
            return 0.0
        return (time - start) * params["slope"]
