"""Staging processor: directory codes, rate limiting and album sidecars."""
