"""Pulsar wireless mouse battery monitor."""

__version__ = "0.1.0"
