"""Demand snapshot resource."""
