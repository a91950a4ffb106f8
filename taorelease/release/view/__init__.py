"""Rendering of release outcomes."""
