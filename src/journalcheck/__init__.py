"""journalcheck: callout structure validation for Markdown journals."""

__version__ = "0.1.0"
