"""
Incremental history build.

One run loads the stored history and the ids of snapshots already merged,
merges every new snapshot oldest first, compacts the result once and saves
both artifacts. A snapshot that fails to download is left out of the
consumed list so the next run retries it.
"""

import time
from typing import Any, Callable, Dict, Optional

from .compactor import compact
from .errors import TransientFetchError
from .logger import StructuredLogger, get_logger
from .storage import diff_history
from .timeline import merge_snapshot, new_merge_stats

DEFAULT_PAUSE = 0.3


def run_incremental(
    store,
    source,
    pause: float = DEFAULT_PAUSE,
    sleep: Callable[[float], None] = time.sleep,
    logger: Optional[StructuredLogger] = None,
) -> Dict[str, Any]:
    """
    Run one incremental pass.

    Args:
        store: Object with load_history(), load_consumed(), save(history, consumed)
        source: Object with list_snapshots() and fetch_records(snapshot_id)
        pause: Seconds to wait between two snapshot downloads
        sleep: Function used for the pause
        logger: Logger receiving progress and counters (default: global logger)

    Returns:
        Summary dict with listed/processed/already_consumed/failed/units counts

    Raises:
        PersistenceError: If the stored artifacts cannot be read or written
        UpstreamUnavailable: If the snapshot list cannot be enumerated
    """
    logger = logger or get_logger()

    history = store.load_history()
    consumed = list(store.load_consumed())
    consumed_ids = set(consumed)
    before = {unit: [dict(e) for e in entries] for unit, entries in history.items()}

    logger.info("Fetching snapshot list...")
    snapshots = sorted(source.list_snapshots(), key=lambda s: s["date"])
    logger.record_snapshots_listed(len(snapshots))
    logger.info(f"Found {len(snapshots)} snapshots total.")

    processed = already = failed = 0
    fetched_any = False
    for snapshot in snapshots:
        snapshot_id = snapshot["id"]
        snapshot_date = snapshot["date"]

        if snapshot_id in consumed_ids:
            already += 1
            logger.record_snapshot_already_consumed()
            continue

        if fetched_any and pause > 0:
            sleep(pause)
        fetched_any = True

        try:
            records = source.fetch_records(snapshot_id)
        except TransientFetchError as e:
            failed += 1
            logger.record_snapshot_failure(type(e).__name__)
            logger.warning(f"[{snapshot_date}] {snapshot_id[:7]} SKIP", error=str(e))
            continue

        stats = new_merge_stats()
        history = merge_snapshot(history, records, snapshot_date, stats)
        consumed.append(snapshot_id)
        consumed_ids.add(snapshot_id)
        processed += 1
        logger.record_snapshot_processed()
        logger.record_noise(stats["noise"])
        logger.record_malformed(stats["malformed"])
        logger.info(f"[{snapshot_date}] {snapshot_id[:7]} OK ({len(records)} académies)", **stats)

    history = compact(history)

    for unit, change in sorted(diff_history(before, history).items()):
        logger.info(f"History changed for {unit}", tenures=len(change["new"]))

    store.save(history, consumed)

    summary = {
        "listed": len(snapshots),
        "processed": processed,
        "already_consumed": already,
        "failed": failed,
        "units": len(history),
    }
    logger.info(
        f"Done. Processed: {processed}, Skipped (already done): {already}, Failed: {failed}",
        units=len(history),
    )
    return summary
