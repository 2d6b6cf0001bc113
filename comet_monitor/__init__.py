"""Borrower risk snapshots for Compound III (Comet) deployments."""

__version__ = "0.1.0"
