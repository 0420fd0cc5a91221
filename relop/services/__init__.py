"""Operator services."""
