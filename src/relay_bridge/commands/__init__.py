"""Command implementations for the relay-bridge CLI."""
