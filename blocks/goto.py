from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar
from blocks.param_templates import label_name_param


class GotoBlock(BaseBlock):
    """
    Named signal publisher (label sink).

    Passes its input through and publishes it under its name as a diagram
    output. Label sources with the same name read it.
    """

    @property
    def kind(self):
        return BlockKind.LABEL_SINK

    @property
    def block_name(self):
        return "Goto"

    @property
    def category(self):
        return "Routing"

    @property
    def color(self):
        return "orange"

    @property
    def doc(self):
        return "Publishes its input under a name, as a diagram output and for From blocks with the same name."

    @property
    def params(self):
        return label_name_param()

    @property
    def b_type(self):
        return BlockPhase.SINK

    def output(self, time, inputs, params, state, dtime):
        return get_scalar(inputs, 0)
