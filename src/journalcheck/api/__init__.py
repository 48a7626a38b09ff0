"""REST API for journalcheck."""
