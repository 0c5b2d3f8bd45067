import math

from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar


class HighPassFilterBlock(BaseBlock):
    """
    First-order high-pass filter: the input minus its low-pass component.
    The output is held from the previous update.
    """

    @property
    def kind(self):
        return BlockKind.HPF

    @property
    def block_name(self):
        return "HighPass"

    @property
    def category(self):
        return "Filters"

    @property
    def color(self):
        return "cyan"

    @property
    def params(self):
        return {
            "cutoff": {"type": "float", "default": 1.0, "doc": "Cutoff frequency in Hz."},
        }

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def prepare(self, values, dt):
        fc = max(0.0, values["cutoff"])
        return {"cutoff": fc, "wc": 2.0 * math.pi * fc}

    def init_state(self, payload, dt):
        return {"x": 0.0, "out": 0.0}

    def output(self, time, inputs, params, state, dtime):
        return state["out"]

    def update(self, time, inputs, params, state, dtime):
        u = get_scalar(inputs, 0)
        state["x"] += dtime * params["wc"] * (u - state["x"])
        state["out"] = u - state["x"]
