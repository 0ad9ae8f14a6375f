"""In-memory cache for the permission matrix and per-user permissions.

Cache Strategy:
- Matrix cache: one entry holding role -> permission set, TTL from settings
- User permission cache: user_id -> permission list, same TTL, max 10,000 entries

Invalidation:
- Matrix cache: on any role permission change
- User cache: on role change, activation change, or matrix change (all users)

Expired matrix entries are kept so callers can fall back to the last known
matrix when the database is unreachable.
"""

import time
from typing import Dict, FrozenSet, List, Optional, Tuple
from uuid import UUID

from ..config import settings

# Cache configuration
_MAX_SIZE = 10000  # Maximum entries in the user permission cache
_MATRIX_KEY = "matrix"


def _ttl() -> int:
    return settings.permission_cache_ttl_seconds


# === Permission Matrix Cache ===


# Cache storage: "matrix" -> (role -> frozenset of permissions, expiry_timestamp)
_matrix_cache: Dict[str, Tuple[Dict[str, FrozenSet[str]], float]] = {}


def get_cached_matrix() -> Optional[Dict[str, FrozenSet[str]]]:
    """
    Get the permission matrix if cached and not expired.

    Returns:
        The matrix if valid, None otherwise
    """
    cached = _matrix_cache.get(_MATRIX_KEY)
    if cached and cached[1] > time.time():
        return cached[0]
    return None


def get_stale_matrix() -> Optional[Dict[str, FrozenSet[str]]]:
    """Get the last cached matrix regardless of expiry."""
    cached = _matrix_cache.get(_MATRIX_KEY)
    return cached[0] if cached else None


def set_cached_matrix(matrix: Dict[str, FrozenSet[str]]) -> None:
    """
    Store the permission matrix.

    Args:
        matrix: Mapping of role name to its permission names
    """
    frozen = {role: frozenset(perms) for role, perms in matrix.items()}
    _matrix_cache[_MATRIX_KEY] = (frozen, time.time() + _ttl())


def invalidate_matrix() -> None:
    """Drop the cached matrix, including the stale copy."""
    _matrix_cache.pop(_MATRIX_KEY, None)


# === User Permission Cache ===


# Cache storage: user_id -> (sorted permission list, expiry_timestamp)
_user_permission_cache: Dict[str, Tuple[List[str], float]] = {}


def get_cached_user_permissions(user_id: UUID) -> Optional[List[str]]:
    """
    Get a user's permissions from cache if present and not expired.

    Args:
        user_id: The user's UUID

    Returns:
        Permission list if found and valid, None otherwise
    """
    key = str(user_id)
    cached = _user_permission_cache.get(key)
    if cached and cached[1] > time.time():
        return cached[0]
    # Remove expired entry
    if cached:
        _user_permission_cache.pop(key, None)
    return None


def set_cached_user_permissions(user_id: UUID, permissions: List[str]) -> None:
    """
    Store a user's permissions.

    Args:
        user_id: The user's UUID
        permissions: The user's effective permission names
    """
    if len(_user_permission_cache) >= _MAX_SIZE:
        _evict_oldest(_user_permission_cache)

    _user_permission_cache[str(user_id)] = (list(permissions), time.time() + _ttl())


def invalidate_user_permissions(user_id: UUID) -> None:
    """
    Remove a user's permissions from cache.

    Args:
        user_id: The user's UUID to invalidate
    """
    _user_permission_cache.pop(str(user_id), None)


def clear_user_permission_cache() -> None:
    """Clear entire user permission cache."""
    _user_permission_cache.clear()


# === Helper Functions ===


def _evict_oldest(cache: dict) -> None:
    """
    Remove oldest 10% of entries from cache.

    Args:
        cache: The cache dictionary to evict from
    """
    if not cache:
        return

    # Sort by expiry time (second element of tuple)
    sorted_items = sorted(cache.items(), key=lambda x: x[1][1])
    evict_count = max(1, len(sorted_items) // 10)

    for key, _ in sorted_items[:evict_count]:
        cache.pop(key, None)


def clear_all_caches() -> None:
    """Clear all caches. Used for testing or admin operations."""
    invalidate_matrix()
    clear_user_permission_cache()


def get_cache_stats() -> dict:
    """
    Get cache statistics for monitoring.

    Returns:
        Dictionary with cache sizes and other stats
    """
    now = time.time()

    def count_valid(cache: dict) -> int:
        return sum(1 for _, (_, expiry) in cache.items() if expiry > now)

    return {
        "matrix_cache": {
            "cached": _MATRIX_KEY in _matrix_cache,
            "valid": count_valid(_matrix_cache) == 1,
        },
        "user_permission_cache": {
            "total": len(_user_permission_cache),
            "valid": count_valid(_user_permission_cache),
            "max_size": _MAX_SIZE,
        },
        "ttl_seconds": _ttl(),
    }
