"""Multi-venue staff scheduling with weekly open-shift reconciliation."""

__version__ = "0.1.0"
