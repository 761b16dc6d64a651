"""Household task tracker with offline-tolerant writes."""

__version__ = "0.1.0"
