"""
Exception types raised at the boundary of diagsim.

The simulation core itself is total: bad parameters resolve to 0.0 and
degenerate blocks output 0.0. Only file and CLI boundaries raise.
"""


class DiagsimError(Exception):
    """Base class for all diagsim errors."""


class DiagramFileError(DiagsimError):
    """A diagram file could not be read or does not describe a diagram."""

    def __init__(self, path, message):
        self.path = path
        super().__init__(f"{path}: {message}")


class InputFileError(DiagsimError):
    """An input file (CSV series or workspace variables) could not be read."""

    def __init__(self, path, message):
        self.path = path
        super().__init__(f"{path}: {message}")


class DiagramFormatError(DiagsimError):
    """A diagram value does not have the expected structure."""
