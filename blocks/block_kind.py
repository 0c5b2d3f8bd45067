"""
Closed set of block kinds and evaluation phases.

``BlockKind`` values are the type strings used in diagram files. Any other
string loads as ``BlockKind.UNSUPPORTED``.
"""

from enum import Enum, IntEnum


class BlockKind(Enum):
    # Sources
    CONSTANT = "constant"
    STEP = "step"
    RAMP = "ramp"
    IMPULSE = "impulse"
    SINE = "sine"
    CHIRP = "chirp"
    NOISE = "noise"
    # Algebraic
    GAIN = "gain"
    SUM = "sum"
    MULT = "mult"
    SATURATION = "saturation"
    SWITCH = "switch"
    # Continuous and memory
    INTEGRATOR = "integrator"
    DERIVATIVE = "derivative"
    DELAY = "delay"
    RATE = "rate"
    BACKLASH = "backlash"
    LPF = "lpf"
    HPF = "hpf"
    PID = "pid"
    TF = "tf"
    STATE_SPACE = "stateSpace"
    # Sampled
    DDELAY = "ddelay"
    ZOH = "zoh"
    FOH = "foh"
    DTF = "dtf"
    DSTATE_SPACE = "dstateSpace"
    # Routing and sinks
    LABEL_SOURCE = "labelSource"
    LABEL_SINK = "labelSink"
    SCOPE = "scope"
    FILE_SINK = "fileSink"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_type(cls, type_name) -> "BlockKind":
        """Map a diagram type string onto a kind; unknown strings are UNSUPPORTED."""
        try:
            return cls(str(type_name))
        except ValueError:
            return cls.UNSUPPORTED


class BlockPhase(IntEnum):
    """
    When a block's output is produced within a tick.

    SOURCE and MEMORY outputs are computed first (from time or from held
    state), ALGEBRAIC outputs are settled by the fixed-point loop, SINK
    outputs are read after the loop.
    """
    SOURCE = 0
    MEMORY = 1
    ALGEBRAIC = 2
    SINK = 3
