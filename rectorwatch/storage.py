import json
import os
from pathlib import Path
from typing import Any, Dict, List

from .errors import PersistenceError
from .timeline import History


def load_json(path: Path, default: Any) -> Any:
    """
    Read a JSON file. A missing or blank file yields `default`;
    an unreadable or corrupt one raises PersistenceError.
    """
    if not path.exists():
        return default
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
    except OSError as e:
        raise PersistenceError(f"Cannot read {path}: {e}") from e
    if not content:
        return default
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Corrupt JSON in {path}: {e}") from e


def save_json(path: Path, data: Any) -> None:
    """Write JSON through a temp file so a crash never leaves a half-written file."""
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_path, path)
    except OSError as e:
        raise PersistenceError(f"Cannot write {path}: {e}") from e


def _check_history(data: Any, path: Path) -> History:
    if not isinstance(data, dict):
        raise PersistenceError(f"{path} must contain an object of académie -> tenures")
    for unit, entries in data.items():
        if not isinstance(entries, list):
            raise PersistenceError(f"{path}: tenures of '{unit}' must be a list")
        for entry in entries:
            if not isinstance(entry, dict) or not {"name", "since"} <= entry.keys():
                raise PersistenceError(f"{path}: invalid tenure in '{unit}': {entry!r}")
            entry.setdefault("gender_marker", "")
    return data


class JsonHistoryStore:
    """
    history.json (the published artifact) plus a private list of the
    commit SHAs already merged into it.
    """

    def __init__(self, history_path: Path, consumed_path: Path):
        self.history_path = Path(history_path)
        self.consumed_path = Path(consumed_path)

    def load_history(self) -> History:
        return _check_history(load_json(self.history_path, {}), self.history_path)

    def load_consumed(self) -> List[str]:
        data = load_json(self.consumed_path, [])
        if not isinstance(data, list) or not all(isinstance(x, str) for x in data):
            raise PersistenceError(f"{self.consumed_path} must contain a list of snapshot ids")
        return data

    def save(self, history: History, consumed: List[str]) -> None:
        # History first: losing the second write only means re-merging
        # already merged snapshots next run, which leaves history unchanged.
        save_json(self.history_path, history)
        save_json(self.consumed_path, list(consumed))

    def close(self) -> None:
        """Nothing to release; each write opens and closes its file."""


def diff_history(old: History, new: History) -> Dict[str, Dict[str, Any]]:
    """Per-académie changes between two histories, for run reporting."""
    changed = {}
    for unit in set(old.keys()) | set(new.keys()):
        ov = old.get(unit, [])
        nv = new.get(unit, [])
        if ov != nv:
            changed[unit] = {"old": ov, "new": nv}
    return changed
