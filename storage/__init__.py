"""
Storage package: persistent email -> username cache.
"""

from .users import CachedIdentity, UserCache, database_path, open_user_cache

__all__ = ["CachedIdentity", "UserCache", "database_path", "open_user_cache"]
