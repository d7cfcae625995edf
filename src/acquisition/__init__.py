"""Chart payload acquisition.

This package stages downloaded chart artifacts and turns them into
raw payloads for the ingest pipeline.
"""
