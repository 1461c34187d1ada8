"""Symbol catalog and synthetic price generation."""

from core.market_data.catalog import SymbolCatalog
from core.market_data.simulator import PriceFeedSimulator

__all__ = [
    "SymbolCatalog",
    "PriceFeedSimulator",
]
