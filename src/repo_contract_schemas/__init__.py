"""Bundled JSON Schemas for repo-contract (package data only)."""
