from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar
from blocks.param_templates import label_name_param


class FromBlock(BaseBlock):
    """
    Named signal receiver (label source).

    When a label sink with the same name exists, the compiler wires that
    sink's driver into port 0 and the block mirrors it inside the algebraic
    loop, starting each tick settled at 0.0. Without a matching sink the
    name is an external input of the diagram.
    """

    @property
    def kind(self):
        return BlockKind.LABEL_SOURCE

    @property
    def block_name(self):
        return "From"

    @property
    def category(self):
        return "Routing"

    @property
    def color(self):
        return "orange"

    @property
    def doc(self):
        return "Receives the signal published by a Goto (label sink) with the same name, or an external input."

    @property
    def params(self):
        return label_name_param()

    @property
    def inputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.ALGEBRAIC

    @property
    def seeds_loop(self):
        return True

    def output(self, time, inputs, params, state, dtime):
        return get_scalar(inputs, 0)
