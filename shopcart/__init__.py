"""
shopcart - storefront shopping cart state

This package contains:
- cart: cart store, persistence adapter, totals, panel visibility
- db: Upstash Redis client factory and key naming
- money: Decimal helpers for prices
- logging: centralized logger configuration

Note: Imports are lazy so that importing shopcart.logging or
shopcart.config does not pull in the Redis client.
"""

__all__ = [
    "CartStore",
    "open_cart_store",
    "calculate_totals",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "CartStore":
        from shopcart.cart import CartStore
        return CartStore
    if name == "open_cart_store":
        from shopcart.cart import open_cart_store
        return open_cart_store
    if name == "calculate_totals":
        from shopcart.cart import calculate_totals
        return calculate_totals
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
