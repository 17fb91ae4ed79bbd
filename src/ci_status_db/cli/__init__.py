"""CLI module for CI Status DB."""
