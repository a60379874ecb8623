"""Merchant settlement engine: acts of completion and settlement batch jobs."""

__version__ = "0.1.0"
