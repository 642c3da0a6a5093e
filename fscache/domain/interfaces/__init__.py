"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that infrastructure components
must implement. The proxy and the CLI depend on these interfaces, not on
concrete implementations.
"""
