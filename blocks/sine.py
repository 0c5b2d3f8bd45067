import math

from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase


class SineBlock(BaseBlock):
    """
    Sine wave source: amp * sin(2*pi*freq*t + phase).
    """

    @property
    def kind(self):
        return BlockKind.SINE

    @property
    def block_name(self):
        return "Sine"

    @property
    def category(self):
        return "Sources"

    @property
    def color(self):
        return "blue"

    @property
    def doc(self):
        return (
            "Sine Wave Generator."
            "\n\ny(t) = Amplitude * sin(2*pi*Frequency*t + Phase)"
            "\n\nParameters:"
            "\n- Amplitude: Peak value."
            "\n- Frequency: Oscillation frequency in Hz."
            "\n- Phase: Phase shift in radians."
        )

    @property
    def params(self):
        return {
            "amp": {"type": "float", "default": 1.0, "doc": "Amplitude of the sine wave."},
            "freq": {"type": "float", "default": 1.0, "doc": "Frequency in Hz."},
            "phase": {"type": "float", "default": 0.0, "doc": "Phase shift in radians."},
        }

    @property
    def inputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SOURCE

    def output(self, time, inputs, params, state, dtime):
        return params["amp"] * math.sin(2.0 * math.pi * params["freq"] * time + params["phase"])
