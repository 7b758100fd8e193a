"""Collectors that turn /proc, /sys and container runtime output into typed metrics."""
