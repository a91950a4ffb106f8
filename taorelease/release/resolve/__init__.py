"""Resolvers: next version and release targets."""
