"""
Snapshot sources.

A source exposes list_snapshots() -> [{"id", "date"}] (oldest first) and
fetch_records(snapshot_id) -> list of raw records.
"""

from .github import GitHubSnapshotSource

__all__ = ["GitHubSnapshotSource"]
