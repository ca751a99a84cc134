"""Compositor, editor view and popups."""
