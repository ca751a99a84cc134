"""Completion providers backed by language servers."""
