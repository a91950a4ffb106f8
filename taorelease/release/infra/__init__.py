"""Adapters to GitHub, npm and TAO instances."""
