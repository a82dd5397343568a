"""Merge-down propagation for release and development branches."""

__version__ = "1.0.0"
