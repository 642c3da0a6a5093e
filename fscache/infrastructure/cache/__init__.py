"""File-backed Cache Implementation.

Provides the concrete CacheStore (Store over a per-namespace FileStore),
key derivation, TTL resolution and the read-through caching proxy.
Bounded Context: Cache Management
"""
