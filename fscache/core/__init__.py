"""Core Application Layer: orchestrates the maintenance use cases.

Connects the CLI entry point with the cache store through the CacheStore
interface.
"""
