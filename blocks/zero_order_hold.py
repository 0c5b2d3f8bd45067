from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import advance_clock, get_scalar, sample_due, sample_period
from blocks.param_templates import sample_time_param


class ZeroOrderHoldBlock(BaseBlock):
    """
    Samples its input every ``ts`` seconds and holds it.
    """

    @property
    def kind(self):
        return BlockKind.ZOH

    @property
    def block_name(self):
        return "ZeroOrderHold"

    @property
    def category(self):
        return "Discrete"

    @property
    def color(self):
        return "purple"

    @property
    def doc(self):
        return (
            "Zero-Order Hold."
            "\n\nSamples the input when the sample clock fires and holds it"
            "\nconstant until the next sample."
            "\n\nUsage:"
            "\nModel a D/A converter or a sampled measurement."
        )

    @property
    def params(self):
        return sample_time_param()

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def prepare(self, values, dt):
        return {"ts": sample_period(values["ts"], dt)}

    def init_state(self, payload, dt):
        return {"held": 0.0, "next": 0.0}

    def output(self, time, inputs, params, state, dtime):
        return state["held"]

    def update(self, time, inputs, params, state, dtime):
        if sample_due(time, state):
            state["held"] = get_scalar(inputs, 0)
            advance_clock(state, params["ts"])
