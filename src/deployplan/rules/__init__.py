"""Immutable, ordered detection rule tables."""
