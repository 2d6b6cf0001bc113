"""Compound III (Comet) ledger integration."""
from .gateway import CometGateway

__all__ = ["CometGateway"]
