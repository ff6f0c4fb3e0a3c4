"""Pattern-based review of the lines a diff adds."""

__version__ = "0.1.0"
