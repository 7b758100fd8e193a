"""serverhealth - point-in-time system health snapshots for a polling dashboard."""

__version__ = "0.1.0"
