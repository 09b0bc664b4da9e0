"""Personal-record tracking for strength training."""

__version__ = "0.1.0"
