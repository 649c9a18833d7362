"""Kronika: name resolution and temporal entity state for campaign records."""

__version__ = "0.1.0"
