"""Utility helpers shared across the photo store."""
