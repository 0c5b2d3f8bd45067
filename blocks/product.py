from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase


class ProductBlock(BaseBlock):
    """
    Multiplies all input signals.

    Unconnected ports read 1.0, the multiplicative identity, so a product with
    a single connected port passes it through.
    """

    @property
    def kind(self):
        return BlockKind.MULT

    @property
    def block_name(self):
        return "Product"

    @property
    def category(self):
        return "Math"

    @property
    def color(self):
        return "lime_green"

    @property
    def doc(self):
        return (
            "Multiplies its input signals."
            "\n\ny = u1 * u2 * u3"
            "\n\nUsage:"
            "\nSignal modulation, gain scheduling, power computation."
        )

    @property
    def params(self):
        return {}

    @property
    def inputs(self):
        return [{"name": f"in{i + 1}", "type": "any"} for i in range(3)]

    @property
    def b_type(self):
        return BlockPhase.ALGEBRAIC

    @property
    def input_fallback(self):
        return 1.0

    def output(self, time, inputs, params, state, dtime):
        result = 1.0
        for port in sorted(inputs):
            result *= inputs[port]
        return result
