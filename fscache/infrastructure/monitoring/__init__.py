"""Logging setup for the fscache command line."""
