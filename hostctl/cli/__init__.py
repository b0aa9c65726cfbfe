"""Command-line layer: declarative commands, input resolution and completion polling."""
