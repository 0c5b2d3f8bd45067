from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import clip_to_limits, get_scalar
from blocks.param_templates import limit_params


class SaturationBlock(BaseBlock):
    """
    Saturates the input signal between lower and upper limits.
    """

    @property
    def kind(self):
        return BlockKind.SATURATION

    @property
    def block_name(self):
        return "Saturation"

    @property
    def category(self):
        return "Nonlinear"

    @property
    def color(self):
        return "magenta"

    @property
    def doc(self):
        return "Clips the input signal to specified min/max limits."

    @property
    def params(self):
        return limit_params(
            default_min=-1.0,
            default_max=1.0,
            min_doc="Lower saturation limit.",
            max_doc="Upper saturation limit.",
        )

    @property
    def b_type(self):
        return BlockPhase.ALGEBRAIC

    def output(self, time, inputs, params, state, dtime):
        return clip_to_limits(get_scalar(inputs, 0), params["min"], params["max"])
