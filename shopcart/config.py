"""
Configuration - environment driven settings for shopcart.

All values are read once at import time. Hosts that need different values
per manager pass them to CartManager / RedisStore explicitly.
"""

import os

# Cart instances
DEFAULT_INSTANCE = os.environ.get("CART_DEFAULT_INSTANCE", "main")
KEY_PREFIX = os.environ.get("CART_KEY_PREFIX", "cart.")

# Metadata lives in its own namespace so no instance name can reach it
METADATA_PREFIX = os.environ.get("CART_METADATA_PREFIX", "cart_meta.")

# Duplicate add handling: "merge" or "reject"
DUPLICATE_POLICY = os.environ.get("CART_DUPLICATE_POLICY", "merge").lower()

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")


def _int_env(name: str, default: int) -> int:
    """Read an integer env var, falling back to default on bad input."""
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


# TTL constants (in seconds)
class TTL:
    """Time-to-live constants for stored carts."""

    CART = _int_env("CART_TTL", 86400)  # 24 hours


# Event names
class Events:
    """Notification names fired around cart mutations."""

    ADDING = "cart.adding"
    ADDED = "cart.added"
    UPDATING = "cart.updating"
    UPDATED = "cart.updated"
    REMOVING = "cart.removing"
    REMOVED = "cart.removed"
    DESTROYING = "cart.destroying"
    DESTROYED = "cart.destroyed"


def cart_key(instance: str) -> str:
    """Store key for a cart instance."""
    return f"{KEY_PREFIX}{instance}"


def metadata_key(instance: str) -> str:
    """Store key for the metadata attached to a cart instance."""
    return f"{METADATA_PREFIX}{instance}"
