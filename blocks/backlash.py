from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar


class BacklashBlock(BaseBlock):
    """
    Mechanical play: the output follows the input only once the input has
    moved more than half the dead-band width away from it.
    """

    @property
    def kind(self):
        return BlockKind.BACKLASH

    @property
    def block_name(self):
        return "Backlash"

    @property
    def category(self):
        return "Nonlinear"

    @property
    def color(self):
        return "magenta"

    @property
    def doc(self):
        return (
            "Backlash (play)."
            "\n\nThe output stays put while the input moves inside a band of"
            "\nthe given width around it, then is dragged along at the band edge."
            "\n\nUsage:"
            "\nGear play, loose linkages."
        )

    @property
    def params(self):
        return {
            "width": {"type": "float", "default": 1.0, "doc": "Total dead-band width."},
        }

    @property
    def b_type(self):
        return BlockPhase.MEMORY

    def prepare(self, values, dt):
        return {"width": max(0.0, values["width"])}

    def init_state(self, payload, dt):
        return {"y": 0.0}

    def output(self, time, inputs, params, state, dtime):
        return state["y"]

    def update(self, time, inputs, params, state, dtime):
        u = get_scalar(inputs, 0)
        half = params["width"] / 2.0
        if u > state["y"] + half:
            state["y"] = u - half
        if u < state["y"] - half:
            state["y"] = u + half
