"""Domain Layer: value objects, exceptions and ports of the cache.

Nothing in here touches the filesystem; the infrastructure layer provides
the concrete implementations.
"""
