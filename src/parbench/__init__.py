"""parbench — timed parallel micro-benchmarks."""

__version__ = "0.1.0"
