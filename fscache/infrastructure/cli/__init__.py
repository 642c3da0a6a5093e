"""Console adapters used by the fscache command line."""
