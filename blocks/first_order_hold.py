from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import advance_clock, get_scalar, sample_due, sample_period
from blocks.param_templates import sample_time_param


class FirstOrderHoldBlock(BaseBlock):
    """
    First-order hold: extrapolates linearly from the last two samples.

    Between samples the output is ``last + slope * (t - last_time)`` where
    ``slope`` is the change between the last two samples over one period.
    """

    @property
    def kind(self):
        return BlockKind.FOH

    @property
    def block_name(self):
        return "FirstOrderHold"

    @property
    def category(self):
        return "Discrete"

    @property
    def color(self):
        return "purple"

    @property
    def params(self):
        return sample_time_param()

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def prepare(self, values, dt):
        return {"ts": sample_period(values["ts"], dt)}

    def init_state(self, payload, dt):
        return {"prev": 0.0, "last": 0.0, "last_time": 0.0, "slope": 0.0, "next": 0.0}

    def output(self, time, inputs, params, state, dtime):
        return state["last"] + state["slope"] * (time - state["last_time"])

    def update(self, time, inputs, params, state, dtime):
        if not sample_due(time, state):
            return
        state["prev"] = state["last"]
        state["last"] = get_scalar(inputs, 0)
        state["last_time"] = time
        state["slope"] = (state["last"] - state["prev"]) / params["ts"]
        advance_clock(state, params["ts"])
