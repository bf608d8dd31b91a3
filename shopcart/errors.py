"""
Common Error Constants

Centralized reasons for no-op outcomes and diagnostics.
"""

# add_to_cart no-op reasons
REASON_MISSING_PRODUCT = "missing_product"
REASON_MISSING_ID = "missing_id"
REASON_INVALID_PRODUCT = "invalid_product"

# update_quantity no-op reasons
REASON_INVALID_QUANTITY = "invalid_quantity"

# Storage diagnostics
ERROR_STORAGE_READ = "Failed to load cart snapshot"
ERROR_STORAGE_WRITE = "Failed to save cart snapshot"
ERROR_STORAGE_CLEAR = "Failed to clear cart snapshot"
ERROR_STORAGE_CORRUPT = "Corrupted cart snapshot"


class StorageUnavailable(ValueError):
    """Key-value storage is not configured or its client cannot be created."""
