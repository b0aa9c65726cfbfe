"""Core infrastructure shared by the SDK and the CLI."""
