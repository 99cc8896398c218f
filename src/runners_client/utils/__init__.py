"""Shared utilities for runners-client (logging setup, file helpers)."""
