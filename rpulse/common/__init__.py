"""Shared helpers used across rpulse packages."""
