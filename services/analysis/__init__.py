"""Plotting services."""
