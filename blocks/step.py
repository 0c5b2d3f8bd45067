from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase


class StepBlock(BaseBlock):
    """
    Unit step: 0 before the step time, 1 from the step time on.
    """

    @property
    def kind(self):
        return BlockKind.STEP

    @property
    def block_name(self):
        return "Step"

    @property
    def category(self):
        return "Sources"

    @property
    def color(self):
        return "blue"

    @property
    def doc(self):
        return (
            "Step Input."
            "\n\nOutputs 0.0 for t < Step Time and 1.0 afterwards."
            "\n\nUsage:"
            "\nTesting system response (step response), setpoint changes."
        )

    @property
    def params(self):
        return {
            "stepTime": {"type": "float", "default": 1.0, "doc": "Time at which the step occurs."},
        }

    @property
    def inputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SOURCE

    def output(self, time, inputs, params, state, dtime):
        return 1.0 if time >= params["stepTime"] else 0.0
