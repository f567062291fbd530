"""Developer CLI for template authors."""
