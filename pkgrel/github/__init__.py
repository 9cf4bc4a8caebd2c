"""GitHub releases API client."""
