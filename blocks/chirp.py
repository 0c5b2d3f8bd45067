import math

from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase


class ChirpBlock(BaseBlock):
    """
    Linear frequency sweep from f0 at t=0 to f1 at t=t1.
    """

    @property
    def kind(self):
        return BlockKind.CHIRP

    @property
    def block_name(self):
        return "Chirp"

    @property
    def category(self):
        return "Sources"

    @property
    def color(self):
        return "blue"

    @property
    def doc(self):
        return (
            "Chirp (swept sine)."
            "\n\ny(t) = amp * sin(2*pi*(f0*t + 0.5*k*t^2)), k = (f1 - f0) / t1"
            "\n\nThe sweep keeps going past t1 at the same rate."
            "\n\nUsage:"
            "\nFrequency response identification."
        )

    @property
    def params(self):
        return {
            "amp": {"type": "float", "default": 1.0, "doc": "Amplitude."},
            "f0": {"type": "float", "default": 1.0, "doc": "Start frequency in Hz."},
            "f1": {"type": "float", "default": 5.0, "doc": "Frequency reached at t1, in Hz."},
            "t1": {"type": "float", "default": 10.0, "doc": "Sweep duration in seconds."},
        }

    @property
    def inputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SOURCE

    def prepare(self, values, dt):
        t1 = max(0.001, values["t1"] or 1.0)
        return {"t1": t1, "k": (values["f1"] - values["f0"]) / t1}

    def output(self, time, inputs, params, state, dtime):
        f0 = params["f0"]
        k = params["k"]
        return params["amp"] * math.sin(2.0 * math.pi * (f0 * time + 0.5 * k * time * time))
