"""Cached internet throughput probe."""
