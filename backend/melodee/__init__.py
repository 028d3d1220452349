"""Melodee ingestion pipeline."""
__version__ = "0.4.0"
