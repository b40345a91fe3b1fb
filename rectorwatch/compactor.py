"""
Offline history compaction.

The online merge only looks at the last entry of an académie, so a single
corrupted observation between two faithful ones leaves the same rector
twice in the list. This pass collapses such duplicates after a run.

For each académie the list is rebuilt in order; an entry matching an
already kept one (first match wins) is absorbed into it: the kept entry
retains its `since` and takes the absorbed entry's name and gender marker.

Because identity is a similarity, overwriting a kept name can make it
match another kept entry that the first scan already passed. The scan is
therefore repeated until it absorbs nothing, so `compact` is idempotent
on every history. Ordinary histories settle after the first scan.
"""

from typing import List, Tuple

from .identity import same_person
from .timeline import History, TenureEntry


def _collapse(entries: List[TenureEntry]) -> Tuple[List[TenureEntry], int]:
    kept: List[TenureEntry] = []
    absorbed = 0
    for entry in entries:
        existing = next((e for e in kept if same_person(e["name"], entry["name"])), None)
        if existing is not None:
            existing["name"] = entry["name"]
            existing["gender_marker"] = entry["gender_marker"]
            absorbed += 1
        else:
            kept.append(dict(entry))
    return kept, absorbed


def compact_entries(entries: List[TenureEntry]) -> List[TenureEntry]:
    """
    Collapse same-person entries of one académie.

    Overwriting a kept name can make it match a later kept entry, so the
    scan is repeated until nothing is absorbed.
    """
    kept, absorbed = _collapse(entries)
    while absorbed:
        kept, absorbed = _collapse(kept)
    return kept


def compact(history: History) -> History:
    """Return a new history with same-person entries collapsed per académie."""
    return {unit: compact_entries(entries) for unit, entries in history.items()}
