"""enginelines: drive an external UCI engine and stream multi-PV analysis."""

__version__ = "0.1.0"
