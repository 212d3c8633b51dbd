"""Shared cross-cutting primitives for the preservation catalog."""
