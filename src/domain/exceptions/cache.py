class CacheStoreError(Exception):
    """The cache backing store failed or is not reachable.

    Internal only: the cache tier converts this into a direct fetch.
    """
