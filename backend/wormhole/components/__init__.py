"""
Components layer.

Contracts shared across the resolution pipeline (see `contracts.py`) and the
DynamicComponent handle wrapping a resolved source.
"""
