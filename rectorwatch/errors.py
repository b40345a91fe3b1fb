"""
Error taxonomy for history builds.

TransientFetchError and MalformedRecord are recoverable: the offending
snapshot or record is skipped and the run goes on. PersistenceError and
UpstreamUnavailable are fatal and end the run with a failure status.
"""

from typing import Optional


class RectorwatchError(Exception):
    """Base class for all rectorwatch errors."""
    pass


class TransientFetchError(RectorwatchError):
    """One snapshot could not be retrieved or parsed."""

    def __init__(self, message: str, snapshot_id: Optional[str] = None):
        super().__init__(message)
        self.snapshot_id = snapshot_id


class MalformedRecord(RectorwatchError):
    """A record inside a snapshot lacks required fields."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class PersistenceError(RectorwatchError):
    """History or consumed-set artifacts cannot be read or written."""
    pass


class UpstreamUnavailable(RectorwatchError):
    """The snapshot list itself cannot be enumerated."""
    pass
