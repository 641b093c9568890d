"""Shared helpers: repository listing, configuration, schema registry."""
