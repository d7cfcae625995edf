"""Partitioned chart storage.

This package persists committed chart snapshots per source key and date.
It powers duplicate checks, archive export, and the SDK client.
"""
