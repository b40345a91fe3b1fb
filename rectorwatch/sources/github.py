"""Snapshots of recteurs.json taken from its GitHub commit history."""

import json
from typing import Any, Dict, List, Optional

import requests

from ..errors import TransientFetchError, UpstreamUnavailable
from ..logger import get_logger
from ..retry import RetryError, RetryableStatus, exponential_backoff, should_retry_http_status

logger = get_logger()

API_BASE = "https://api.github.com"
RAW_BASE = "https://raw.githubusercontent.com"
PER_PAGE = 100
REQUEST_TIMEOUT = 30

DEFAULT_OWNER = "guilamu"
DEFAULT_REPO = "liste-des-Recteurs-et-retrices-des-acad-mies-francaises-toujours-jour"
DEFAULT_PATH = "recteurs.json"


def _log_retry(attempt: int, exception: Exception, delay: float):
    logger.warning("Retrying GitHub request", attempt=attempt, error=str(exception), delay=delay)


def commit_date(commit: Dict[str, Any]) -> str:
    """Day of a commit (committer date, else author date), or 'unknown'."""
    info = commit.get("commit") or {}
    raw = ((info.get("committer") or {}).get("date")
           or (info.get("author") or {}).get("date")
           or "")
    return raw[:10] if raw else "unknown"


class GitHubSnapshotSource:
    """
    Lists the commits that touched a file and fetches the file content
    at each of them.
    """

    def __init__(
        self,
        owner: str = DEFAULT_OWNER,
        repo: str = DEFAULT_REPO,
        path: str = DEFAULT_PATH,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
    ):
        self.owner = owner
        self.repo = repo
        self.path = path
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "rectorwatch",
            "Accept": "application/vnd.github+json",
        })
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        self._get = exponential_backoff(
            max_retries=max_retries,
            base_delay=base_delay,
            exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, RetryableStatus),
            on_retry=_log_retry,
        )(self._get_once)

    def _get_once(self, url: str, params: Optional[dict] = None) -> requests.Response:
        logger.record_api_call()
        resp = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT)
        if should_retry_http_status(resp.status_code):
            raise RetryableStatus(resp.status_code, url)
        resp.raise_for_status()
        return resp

    def list_snapshots(self) -> List[Dict[str, str]]:
        """
        Return every commit touching the file as {"id", "date"}, oldest first.

        Raises:
            UpstreamUnavailable: If any page of the commit list cannot be read
        """
        url = f"{API_BASE}/repos/{self.owner}/{self.repo}/commits"
        commits: List[Dict[str, Any]] = []
        page = 1
        while True:
            logger.info(f"Fetching commit page {page}...")
            params = {"path": self.path, "per_page": PER_PAGE, "page": page}
            try:
                data = self._get(url, params=params).json()
            except (RetryError, requests.exceptions.RequestException, ValueError) as e:
                logger.error("Cannot list commits", url=url, page=page, error=str(e))
                raise UpstreamUnavailable(f"Cannot list commits of {self.path}: {e}") from e
            if not isinstance(data, list) or not data:
                break
            commits.extend(data)
            if len(data) < PER_PAGE:
                break
            page += 1

        # The API lists newest first
        commits.reverse()
        return [{"id": c["sha"], "date": commit_date(c)} for c in commits if c.get("sha")]

    def fetch_records(self, snapshot_id: str) -> List[Dict[str, Any]]:
        """
        Return the records of the file at one commit.

        Raises:
            TransientFetchError: On HTTP failure or an unparsable payload
        """
        url = f"{RAW_BASE}/{self.owner}/{self.repo}/{snapshot_id}/{self.path}"
        try:
            resp = self._get(url)
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "HTTPError"
            logger.record_error(f"HTTPError_{status}")
            raise TransientFetchError(f"HTTP {status} for {url}", snapshot_id=snapshot_id) from e
        except (RetryError, requests.exceptions.RequestException) as e:
            logger.record_error(type(e).__name__)
            raise TransientFetchError(f"Request failed for {url}: {e}", snapshot_id=snapshot_id) from e

        try:
            records = json.loads(resp.text)
        except ValueError as e:
            raise TransientFetchError(f"Invalid JSON at {snapshot_id}: {e}", snapshot_id=snapshot_id) from e
        if not isinstance(records, list):
            raise TransientFetchError(
                f"Expected a list of records at {snapshot_id}, got {type(records).__name__}",
                snapshot_id=snapshot_id,
            )
        return records
