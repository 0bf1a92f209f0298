"""SafeSea client: network resilience and session layer for the marine-safety API."""

__version__ = "0.1.0"
