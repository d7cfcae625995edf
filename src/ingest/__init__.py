"""Chart payload ingestion.

This package parses and normalizes raw chart payloads, reconciles their
dates, and sequences acquisition targets into the store layer.
"""
