"""Test fixtures for CI Status DB."""
