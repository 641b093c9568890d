"""Repo Contract - declarative repository compliance checks."""

__version__ = "0.3.0"
