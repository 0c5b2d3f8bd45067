"""
Block Behavior Library.

One module per block kind; each defines a single ``BaseBlock`` subclass.
``diagsim.block_loader`` discovers them and maps every ``BlockKind`` to its
implementation.
"""
