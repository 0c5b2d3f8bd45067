from blocks.base_block import BaseBlock
from blocks.block_kind import BlockKind, BlockPhase
from blocks.input_helpers import get_scalar


class ExportBlock(BaseBlock):
    """
    File sink: records its input so the caller can write it out.
    """

    @property
    def kind(self):
        return BlockKind.FILE_SINK

    @property
    def block_name(self):
        return "Export"

    @property
    def category(self):
        return "Sinks"

    @property
    def color(self):
        return "red"

    @property
    def doc(self):
        return (
            "Captures the input signal as a trace."
            "\n\nThe trace is part of the simulation result; `diagsim run --traces`"
            "\nwrites all captured traces to a CSV file."
        )

    @property
    def params(self):
        return {
            "filename": {"type": "string", "default": "", "doc": "Suggested output file name."},
        }

    @property
    def outputs(self):
        return []

    @property
    def b_type(self):
        return BlockPhase.SINK

    def output(self, time, inputs, params, state, dtime):
        return get_scalar(inputs, 0)
