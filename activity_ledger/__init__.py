"""Contribution activity ingestion and leaderboard aggregation."""

__version__ = "1.0.0"
