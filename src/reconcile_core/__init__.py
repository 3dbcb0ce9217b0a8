"""
reconcile-core: pure order-book trade reconciliation.

No I/O, no network, no side effects. Consumes extracted order records,
produces matched Trades, IncompleteOrders and warnings. Fully
deterministic and unit-testable.
"""

from reconcile_core.contracts import (
    Direction,
    ExtractionPayloadError,
    IncompleteOrder,
    Order,
    ReconciliationResult,
    Side,
    SymbolInfo,
    Trade,
)
from reconcile_core.pipeline import reconcile

__all__ = [
    "Direction",
    "ExtractionPayloadError",
    "IncompleteOrder",
    "Order",
    "reconcile",
    "ReconciliationResult",
    "Side",
    "SymbolInfo",
    "Trade",
]
