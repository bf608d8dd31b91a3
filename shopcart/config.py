"""Cart configuration read from the environment."""
import os
from decimal import Decimal, InvalidOperation

from shopcart.logging import get_logger

logger = get_logger(__name__)


def _env_decimal(name: str, default: str) -> Decimal:
    """Read a non-negative Decimal env var, falling back to default on bad input."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return Decimal(default)
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return Decimal(default)
    if not value.is_finite() or value < 0:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return Decimal(default)
    return value


def _env_int(name: str, default: int) -> int:
    """Read a non-negative int env var, falling back to default on bad input."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    if value < 0:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default
    return value


# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Storage key prefix; the full key is {prefix}{session_id}
CART_STORAGE_PREFIX = os.environ.get("CART_STORAGE_PREFIX", "cart:")

# 0 = keep the snapshot until the session key is overwritten
CART_TTL_SECONDS = _env_int("CART_TTL_SECONDS", 0)

# Delay before the cart panel opens after an add (seconds)
CART_OPEN_DELAY = float(_env_decimal("CART_OPEN_DELAY", "0.1"))

# Pricing
FREE_SHIPPING_THRESHOLD = _env_decimal("FREE_SHIPPING_THRESHOLD", "50")
SHIPPING_FEE = _env_decimal("SHIPPING_FEE", "5.90")

# Display label only, amounts are never converted
CURRENCY_LABEL = os.environ.get("CURRENCY_LABEL", "RM")
