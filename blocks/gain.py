from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar


class GainBlock(BaseBlock):
    """
    Multiplies the input by a constant gain.
    """

    @property
    def kind(self):
        return BlockKind.GAIN

    @property
    def block_name(self):
        return "Gain"

    @property
    def category(self):
        return "Math"

    @property
    def color(self):
        return "yellow"

    @property
    def doc(self):
        return (
            "Scalar Gain."
            "\n\ny = gain * u"
            "\n\nUsage:"
            "\nAmplify or attenuate signals, controller proportional terms."
        )

    @property
    def params(self):
        return {
            "gain": {"type": "float", "default": 1.0, "doc": "Multiplication factor."},
        }

    @property
    def b_type(self):
        return BlockPhase.ALGEBRAIC

    def output(self, time, inputs, params, state, dtime):
        return get_scalar(inputs, 0) * params["gain"]
