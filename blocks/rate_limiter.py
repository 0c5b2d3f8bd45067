from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import clip_to_limits, get_scalar


class RateLimiterBlock(BaseBlock):
    """
    Limits the rate of change (slew rate) of the input signal.
    """

    @property
    def kind(self):
        return BlockKind.RATE

    @property
    def block_name(self):
        return "RateLimiter"

    @property
    def category(self):
        return "Control"

    @property
    def color(self):
        return "magenta"

    @property
    def doc(self):
        return (
            "Rate Limiter."
            "\n\nLimits the rate of change (slope) of the input signal."
            "\n\nParameters:"
            "\n- Rise: Max positive slope (units/sec), negative values count as 0."
            "\n- Fall: Max negative slope magnitude (units/sec), negative values count as 0."
            "\n\nUsage:"
            "\nPrevents abrupt changes in control signals or models actuator speed limits."
        )

    @property
    def params(self):
        return {
            "rise": {"type": "float", "default": 1.0, "doc": "Maximum rising rate."},
            "fall": {"type": "float", "default": 1.0, "doc": "Maximum falling rate."},
        }

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def prepare(self, values, dt):
        return {"rise": max(0.0, values["rise"]), "fall": max(0.0, values["fall"])}

    def init_state(self, payload, dt):
        return {"y": 0.0}

    def output(self, time, inputs, params, state, dtime):
        return state["y"]

    def update(self, time, inputs, params, state, dtime):
        prev = state["y"]
        state["y"] = clip_to_limits(
            get_scalar(inputs, 0),
            prev - params["fall"] * dtime,
            prev + params["rise"] * dtime,
        )
