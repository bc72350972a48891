"""Order lifecycle state engine for flexographic print-plate orders."""

__version__ = "0.1.0"
