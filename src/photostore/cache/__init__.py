"""Persistent index and in-memory listing cache."""
