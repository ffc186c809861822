"""Webhook intake resource."""
