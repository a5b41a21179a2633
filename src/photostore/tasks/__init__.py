"""Qt background tasks."""
