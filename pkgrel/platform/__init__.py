"""Process execution and user-level paths."""
