"""Completion triggering, request racing and popup reconciliation."""
