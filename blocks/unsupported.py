from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase


class UnsupportedBlock(BaseBlock):
    """
    Stand-in for block types this simulator does not implement.
    Outputs a constant 0.0 so the rest of the diagram still runs.
    """

    @property
    def kind(self):
        return BlockKind.UNSUPPORTED

    @property
    def block_name(self):
        return "Unsupported"

    @property
    def params(self):
        return {}

    @property
    def inputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SOURCE

    def output(self, time, inputs, params, state, dtime):
        return 0.0
