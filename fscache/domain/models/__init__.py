"""Value objects shared by the cache store, the proxy and the CLI."""
