"""Command-line interface for HIPAA Guardian."""
