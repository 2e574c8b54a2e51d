"""Utility modules for sweep."""
