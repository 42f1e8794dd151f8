"""Compass-and-straightedge construction engine."""
