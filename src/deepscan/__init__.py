"""DeepScan — pattern-based static analysis with continuous scanning."""

__version__ = "0.1.0"
