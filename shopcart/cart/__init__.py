"""Cart package: models, storage, totals, panel and store."""
from .models import AddedToCartNotice, AddResult, CartLine, CartSnapshot, CartTotals, ProductInput
from .panel import CartPanel
from .service import CartStore, open_cart_store
from .storage import CartStorage
from .totals import calculate_totals

__all__ = [
    "AddedToCartNotice",
    "AddResult",
    "CartLine",
    "CartSnapshot",
    "CartTotals",
    "ProductInput",
    "CartPanel",
    "CartStore",
    "open_cart_store",
    "CartStorage",
    "calculate_totals",
]
