"""
diagsim - block-diagram simulator and code generator.

The interpreter and the C/Python exporters share one compiled view of a
diagram so every backend evaluates blocks in the same order.
"""

__version__ = "0.1.0"
