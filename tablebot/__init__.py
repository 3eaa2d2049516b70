"""Slot-filling table reservation flow: gather, confirm, commit."""

__version__ = "0.1.0"
