from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar


class ScopeBlock(BaseBlock):
    """
    Records its input as a trace in the simulation result.
    """

    @property
    def kind(self):
        return BlockKind.SCOPE

    @property
    def block_name(self):
        return "Scope"

    @property
    def category(self):
        return "Sinks"

    @property
    def color(self):
        return "red"

    @property
    def doc(self):
        return "Displays input signals on a plot."

    @property
    def params(self):
        return {
            "labels": {"type": "string", "default": "", "doc": "Trace label (defaults to the block id)."},
        }

    @property
    def outputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SINK

    def output(self, time, inputs, params, state, dtime):
        return get_scalar(inputs, 0)
