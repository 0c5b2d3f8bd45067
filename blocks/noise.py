from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase

LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MASK = 0xFFFFFFFF
LCG_MAX = 4294967295.0


def lcg_next(seed):
    """One step of the 32-bit linear congruential generator."""
    return (LCG_MULTIPLIER * seed + LCG_INCREMENT) & LCG_MASK


class NoiseBlock(BaseBlock):
    """
    Uniform pseudo-random noise in [-amp, amp].

    Uses a 32-bit LCG instead of numpy's RNG so the interpreter and the
    generated C and Python programs produce the same sequence.
    """

    @property
    def kind(self):
        return BlockKind.NOISE

    @property
    def block_name(self):
        return "Noise"

    @property
    def category(self):
        return "Sources"

    @property
    def color(self):
        return "blue"

    @property
    def doc(self):
        return (
            "Uniform Noise Generator."
            "\n\nOutputs amp * u with u uniform in [-1, 1], advancing a"
            "\nlinear congruential generator once per tick."
            "\n\nParameters:"
            "\n- Amplitude: Peak noise value."
            "\n- Seed: Initial generator state (same seed, same sequence)."
        )

    @property
    def params(self):
        return {
            "amp": {"type": "float", "default": 1.0, "doc": "Noise amplitude."},
            "seed": {"type": "int", "default": 1, "doc": "Initial generator state."},
        }

    @property
    def inputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SOURCE

    def prepare(self, values, dt):
        return {"seed": values["seed"] & LCG_MASK}

    def init_state(self, payload, dt):
        return {"rng": payload["seed"]}

    def output(self, time, inputs, params, state, dtime):
        state["rng"] = lcg_next(state["rng"])
        return params["amp"] * ((state["rng"] / LCG_MAX) * 2.0 - 1.0)
