"""Process and logging helpers."""
