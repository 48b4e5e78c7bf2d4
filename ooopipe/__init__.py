"""Trace readers, an instruction mix analyzer and an out-of-order pipeline simulator."""

__version__ = "0.1.0"

__all__ = ["__version__"]