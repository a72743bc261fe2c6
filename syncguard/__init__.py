"""Automatic disabling of connections whose replication jobs keep failing."""

__version__ = "0.1.0"
