"""Service modules"""
from .borrowers import BorrowerIndexer
from .catalog import AssetCatalogBuilder
from .monitor import Monitor
from .prices import PriceRefresher
from .sync import SyncEngine

__all__ = [
    "AssetCatalogBuilder",
    "BorrowerIndexer",
    "Monitor",
    "PriceRefresher",
    "SyncEngine",
]
