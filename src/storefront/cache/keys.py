"""Cache key schema for the storefront.

Key format: {prefix}:{resource}[:{identifier}]

Where:
- prefix: "storefront" by default (CACHE_KEY_PREFIX), namespace in a shared Redis
- resource: "products", "product", "admin:users", "admin:user", "admin:orders"
- identifier: database id for detail keys, "all" for listings

Lock keys live outside the data namespace: lock:{data_key}. A data pattern
that starts with the prefix can therefore never match a lock.
"""

from __future__ import annotations

from storefront.config import settings


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    PREFIX = settings.cache_key_prefix
    LOCK_PREFIX = "lock:"

    @classmethod
    def products_all(cls) -> str:
        """Key for the public product listing."""
        return f"{cls.PREFIX}:products:all"

    @classmethod
    def product(cls, product_id: str) -> str:
        """Key for a single product detail."""
        return f"{cls.PREFIX}:product:{product_id}"

    @classmethod
    def admin_users_all(cls) -> str:
        """Key for the admin user listing."""
        return f"{cls.PREFIX}:admin:users:all"

    @classmethod
    def admin_user(cls, user_id: str) -> str:
        """Key for a single admin user view."""
        return f"{cls.PREFIX}:admin:user:{user_id}"

    @classmethod
    def admin_orders_all(cls) -> str:
        """Key for the admin order listing."""
        return f"{cls.PREFIX}:admin:orders:all"

    # -------------------------------------------------------------------------
    # Invalidation patterns
    # -------------------------------------------------------------------------

    @classmethod
    def products_pattern(cls) -> str:
        """Pattern matching every product listing variant."""
        return f"{cls.PREFIX}:products:*"

    @classmethod
    def product_pattern(cls, product_id: str) -> str:
        """Pattern for one product detail.

        Has no wildcard; kept as a pattern so it goes through SCAN like the rest.
        """
        return cls.product(product_id)

    @classmethod
    def admin_users_pattern(cls) -> str:
        """Pattern matching admin user listings."""
        return f"{cls.PREFIX}:admin:users:*"

    @classmethod
    def admin_orders_pattern(cls) -> str:
        """Pattern matching admin order listings."""
        return f"{cls.PREFIX}:admin:orders:*"

    # -------------------------------------------------------------------------
    # Locks
    # -------------------------------------------------------------------------

    @classmethod
    def lock(cls, key: str) -> str:
        """Lock key guarding the refill of a data key."""
        return f"{cls.LOCK_PREFIX}{key}"

    @classmethod
    def is_lock_key(cls, key: str) -> bool:
        """Whether a key belongs to the lock namespace."""
        return key.startswith(cls.LOCK_PREFIX)

    @classmethod
    def parse_key(cls, key: str) -> dict[str, str] | None:
        """Parse a namespaced data key into its components.

        Returns None for lock keys and keys outside the prefix.
        """
        parts = key.split(":")
        if len(parts) < 3 or parts[0] != cls.PREFIX:
            return None

        return {
            "prefix": parts[0],
            "resource": ":".join(parts[1:-1]),
            "identifier": parts[-1],
        }
