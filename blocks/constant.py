from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase


class ConstantBlock(BaseBlock):
    """
    Outputs a constant value at every time step.
    """

    @property
    def kind(self):
        return BlockKind.CONSTANT

    @property
    def block_name(self):
        return "Constant"

    @property
    def category(self):
        return "Sources"

    @property
    def color(self):
        return "green"

    @property
    def doc(self):
        return (
            "Outputs a constant value."
            "\n\nParameters:"
            "\n- Value: The constant output value (number or expression)."
            "\n\nUsage:"
            "\nUseful for setpoints, constant parameters, or biasing a signal."
        )

    @property
    def params(self):
        return {
            "value": {"type": "float", "default": 1.0, "doc": "Constant output value."},
        }

    @property
    def inputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SOURCE

    def output(self, time, inputs, params, state, dtime):
        return params["value"]
