"""
Cache wrappers.

Wrappers implement the Cache capability on top of other caches, adding
behavior such as failure isolation.
"""

from .safe_cache import SafeCacheWrapper

__all__ = ["SafeCacheWrapper"]
