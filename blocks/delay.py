from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import MIN_SAMPLE_PERIOD, advance_clock, get_scalar, sample_due
from blocks.param_templates import sample_time_param


class DelayBlock(BaseBlock):
    """
    Discrete delay of N samples (z^-N), clocked at its own period.
    """

    @property
    def kind(self):
        return BlockKind.DDELAY

    @property
    def block_name(self):
        return "Delay"

    @property
    def category(self):
        return "Discrete"

    @property
    def color(self):
        return "purple"

    @property
    def doc(self):
        return (
            "Discrete Delay (z^-N)."
            "\n\nShifts the sampled input through N slots, one per sample period."
            "\n\nParameters:"
            "\n- Steps: Number of sample periods of delay (minimum 1)."
            "\n- ts: Sample period (default 0.1 s)."
        )

    @property
    def params(self):
        return {
            "steps": {"type": "float", "default": 1, "doc": "Delay length in samples."},
            **sample_time_param(default=0.1),
        }

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def prepare(self, values, dt):
        return {
            "steps": max(1, int(round(values["steps"] or 1))),
            "ts": max(MIN_SAMPLE_PERIOD, values["ts"] or 0.1),
        }

    def init_state(self, payload, dt):
        return {"buffer": [0.0] * payload["steps"], "last": 0.0, "next": 0.0}

    def output(self, time, inputs, params, state, dtime):
        return state["last"]

    def update(self, time, inputs, params, state, dtime):
        if not sample_due(time, state):
            return
        buffer = state["buffer"]
        buffer.pop(0)
        buffer.append(get_scalar(inputs, 0))
        state["last"] = buffer[0]
        advance_clock(state, params["ts"])
