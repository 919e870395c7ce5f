"""Bookminder: bookmark triage with project rollups."""

__version__ = "0.1.0"
