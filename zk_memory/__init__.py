"""Commitment-verified two-player memory (pairs-matching) game."""

__version__ = "0.1.0"
