"""Search domain - transaction API, advanced filters and labels."""

from .router import router, labels_router
from .service import search_transactions, create_transaction, labels_from_ids

__all__ = [
    "router",
    "labels_router",
    "search_transactions",
    "create_transaction",
    "labels_from_ids",
]
