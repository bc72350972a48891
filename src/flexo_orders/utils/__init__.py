"""Utilities package for the flexo_orders engine."""
