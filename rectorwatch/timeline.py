"""
Online timeline merge.

Folds one snapshot of recteurs.json into the per-académie history.

history shape:
    {
        "Aix-Marseille": [
            {"name": "...", "gender_marker": "M.", "since": "YYYY-MM-DD"},
            ...
        ]
    }

Snapshots must be merged oldest first. Each record is only compared with
the last entry of its académie: a new name opens a tenure, a
reformatted or slightly misspelled name refines the last one in place.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from .identity import same_person
from .logger import get_logger
from .normalize import normalize_unit
from .schema import is_noise, validate_record

logger = get_logger()

TenureEntry = Dict[str, str]
History = Dict[str, List[TenureEntry]]


def new_merge_stats() -> Dict[str, int]:
    return {"appended": 0, "refined": 0, "unchanged": 0, "noise": 0, "malformed": 0}


def merge_snapshot(
    history: History,
    records: Iterable[Any],
    snapshot_date: str,
    stats: Optional[Dict[str, int]] = None,
) -> History:
    """
    Merge the records of one snapshot into history, in place.

    Args:
        history: Accumulated history, mutated and returned
        records: Raw records ({"academie", "nom", "genre"}) of the snapshot
        snapshot_date: Snapshot date (YYYY-MM-DD), used as `since` of new tenures
        stats: Optional counter dict (see new_merge_stats) updated per record

    Returns:
        The same history object, for folding
    """
    if stats is None:
        stats = new_merge_stats()

    for record in records:
        errors = validate_record(record)
        if errors:
            stats["malformed"] += 1
            logger.debug("Skipping malformed record", date=snapshot_date, errors=errors)
            continue

        unit = normalize_unit(record["academie"])
        name = (record.get("nom") or "").strip()
        gender = (record.get("genre") or "").strip()

        if is_noise(name):
            stats["noise"] += 1
            continue

        entries = history.setdefault(unit, [])
        last = entries[-1] if entries else None

        if last is None or not same_person(last["name"], name):
            entries.append({"name": name, "gender_marker": gender, "since": snapshot_date})
            stats["appended"] += 1
        elif last["name"] != name or last["gender_marker"] != gender:
            # Same person, reformatted or corrected name
            last["name"] = name
            last["gender_marker"] = gender
            stats["refined"] += 1
        else:
            stats["unchanged"] += 1

    return history


def fold_snapshots(
    snapshots: Iterable[Tuple[str, Iterable[Any]]],
    history: Optional[History] = None,
) -> History:
    """Merge (date, records) pairs in the given order and return the history."""
    if history is None:
        history = {}
    for snapshot_date, records in snapshots:
        history = merge_snapshot(history, records, snapshot_date)
    return history
