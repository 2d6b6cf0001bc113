"""Protocol interfaces for the borrower monitor."""
from .chain import ChainClient
from .gateway import ChainGateway

__all__ = ["ChainClient", "ChainGateway"]
