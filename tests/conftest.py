"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from typing import Any, Dict, List, Optional

from rectorwatch.errors import TransientFetchError
from rectorwatch.logger import StructuredLogger, get_logger

# Module-level loggers are created on import; keep them off the filesystem
get_logger(enable_file=False, enable_console=False)


class FakeSnapshotSource:
    """In-memory snapshot source: {id: (date, records)} plus ids that fail."""

    def __init__(self, snapshots: Dict[str, Any], failing: Optional[set] = None, order: Optional[List[str]] = None):
        self.snapshots = snapshots
        self.failing = set(failing or ())
        self.order = order or list(snapshots)
        self.fetched: List[str] = []

    def list_snapshots(self) -> List[Dict[str, str]]:
        return [{"id": sid, "date": self.snapshots[sid][0]} for sid in self.order]

    def fetch_records(self, snapshot_id: str) -> List[Dict[str, Any]]:
        self.fetched.append(snapshot_id)
        if snapshot_id in self.failing:
            raise TransientFetchError(f"HTTP 500 for {snapshot_id}", snapshot_id=snapshot_id)
        return self.snapshots[snapshot_id][1]


def rec(academie: str, nom: str, genre: str = "M.") -> Dict[str, str]:
    return {"academie": academie, "nom": nom, "genre": genre}


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    """Logger with no output, fresh counters."""
    return StructuredLogger(name="rectorwatch-test", enable_file=False, enable_console=False)


@pytest.fixture
def snapshot_series() -> Dict[str, Any]:
    """Three commits of recteurs.json with reformatting, a typo and a new rector."""
    return {
        "c1": ("2024-01-10", [
            rec("Lyon", "DUPONT Jean"),
            rec("Polynésie Française", "Marie Curie", "Mme"),
            rec("Nice", "Rémi Decout-Paolini"),
        ]),
        "c2": ("2024-02-10", [
            rec("Lyon", "Dupont Jean"),
            rec("Polynésie française", "Marie Curie", "Mme"),
            rec("Nice", "Rémi Decout-Paolino"),
            {"academie": "Paris", "error": "Non trouvé"},
        ]),
        "c3": ("2024-03-10", [
            rec("Lyon", "Claire Bernard", "Mme"),
            rec("Polynésie française", "Marie Curie", "Mme"),
            rec("Nice", "Le recteur est nommé par décret du 3 mars"),
        ]),
    }


@pytest.fixture
def fake_source(snapshot_series) -> FakeSnapshotSource:
    return FakeSnapshotSource(snapshot_series)


@pytest.fixture
def history_paths(tmp_path) -> Dict[str, Path]:
    return {
        "history": tmp_path / "history.json",
        "consumed": tmp_path / ".history-commits.json",
    }
