from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar


def delay_steps(delay_time, dt):
    """Number of whole ticks for a delay in seconds (at least one)."""
    if dt <= 0:
        return 1
    return max(1, int(round(delay_time / dt)))


class TransportDelayBlock(BaseBlock):
    """
    Continuous-time transport delay: e^(-τs)
    Delays the input signal by a whole number of ticks, round(τ/dt).

    The line holds steps+1 slots. Each tick the slot at ``idx`` is read, the
    input is written ``steps`` slots ahead of it and ``idx`` advances, so the
    value read at tick n is the input written at tick n-steps.
    """

    @property
    def kind(self):
        return BlockKind.DELAY

    @property
    def block_name(self):
        return "TransportDelay"

    @property
    def category(self):
        return "Control"

    @property
    def color(self):
        return "cyan"

    @property
    def doc(self):
        return (
            "Transport Delay / Time Delay."
            "\n\nDelays the input signal by a specified time amount."
            "\ny(t) = u(t - Delay), 0 before the delay has elapsed."
            "\n\nParameters:"
            "\n- Delay: Amount of delay in seconds, rounded to whole steps (minimum one)."
            "\n\nUsage:"
            "\nModels pipe flow, conveyor belts, or communication latency."
        )

    @property
    def params(self):
        return {
            "delay": {"type": "float", "default": 0.1, "doc": "Delay time τ in seconds."},
        }

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def prepare(self, values, dt):
        return {"steps": delay_steps(values["delay"], dt)}

    def init_state(self, payload, dt):
        return {"buffer": [0.0] * (payload["steps"] + 1), "idx": 0}

    def output(self, time, inputs, params, state, dtime):
        return state["buffer"][state["idx"]]

    def update(self, time, inputs, params, state, dtime):
        buffer = state["buffer"]
        size = len(buffer)
        idx = state["idx"]
        buffer[(idx + params["steps"]) % size] = get_scalar(inputs, 0)
        state["idx"] = (idx + 1) % size
