"""State/store layer.

This package is the single source of truth for per-device relay state. Fleet
polling, focus polling and confirmed control commands all write through it.
"""
