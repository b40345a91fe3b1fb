"""
Tests for the GitHub commit-history snapshot source.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests
from rectorwatch.errors import TransientFetchError, UpstreamUnavailable
from rectorwatch.sources.github import PER_PAGE, GitHubSnapshotSource, commit_date


def make_response(status=200, json_data=None, text=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = json_data
    resp.text = text if text is not None else json.dumps(json_data)
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"HTTP {status}", response=resp)
    return resp


def make_commit(sha, date="2024-01-10T08:00:00Z"):
    return {"sha": sha, "commit": {"committer": {"date": date}, "author": {"date": date}}}


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture
def source(session):
    return GitHubSnapshotSource(owner="owner", repo="repo", session=session, max_retries=1, base_delay=0)


class TestCommitDate:

    def test_committer_date(self):
        assert commit_date(make_commit("a", "2024-05-02T10:11:12Z")) == "2024-05-02"

    def test_author_fallback(self):
        commit = {"sha": "a", "commit": {"author": {"date": "2023-11-30T00:00:00Z"}}}
        assert commit_date(commit) == "2023-11-30"

    def test_unknown(self):
        assert commit_date({"sha": "a"}) == "unknown"


class TestListSnapshots:
    """Test commit enumeration."""

    def test_single_page_oldest_first(self, source, session):
        session.get.return_value = make_response(json_data=[
            make_commit("new", "2024-03-01T00:00:00Z"),
            make_commit("old", "2024-01-01T00:00:00Z"),
        ])
        assert source.list_snapshots() == [
            {"id": "old", "date": "2024-01-01"},
            {"id": "new", "date": "2024-03-01"},
        ]
        _, kwargs = session.get.call_args
        assert kwargs["params"]["path"] == "recteurs.json"

    def test_pagination(self, source, session):
        page1 = [make_commit(f"p1-{i}") for i in range(PER_PAGE)]
        page2 = [make_commit("p2-0"), make_commit("p2-1")]
        session.get.side_effect = [make_response(json_data=page1), make_response(json_data=page2)]

        snapshots = source.list_snapshots()

        assert len(snapshots) == PER_PAGE + 2
        assert snapshots[0]["id"] == "p2-1"
        assert snapshots[-1]["id"] == "p1-0"
        pages = [call.kwargs["params"]["page"] for call in session.get.call_args_list]
        assert pages == [1, 2]

    def test_full_last_page_stops_on_empty(self, source, session):
        page1 = [make_commit(f"p1-{i}") for i in range(PER_PAGE)]
        session.get.side_effect = [make_response(json_data=page1), make_response(json_data=[])]
        assert len(source.list_snapshots()) == PER_PAGE
        assert session.get.call_count == 2

    def test_no_commits(self, source, session):
        session.get.return_value = make_response(json_data=[])
        assert source.list_snapshots() == []

    def test_http_error_is_fatal(self, source, session):
        session.get.return_value = make_response(status=404, json_data={"message": "Not Found"})
        with pytest.raises(UpstreamUnavailable):
            source.list_snapshots()

    def test_retryable_status_then_fatal(self, source, session):
        session.get.return_value = make_response(status=503, json_data={})
        with pytest.raises(UpstreamUnavailable):
            source.list_snapshots()
        assert session.get.call_count == 2

    def test_connection_error_retried(self, source, session):
        session.get.side_effect = [
            requests.exceptions.ConnectionError("reset"),
            make_response(json_data=[make_commit("a")]),
        ]
        assert [s["id"] for s in source.list_snapshots()] == ["a"]

    def test_invalid_json_is_fatal(self, source, session):
        resp = make_response(text="<html>")
        resp.json.side_effect = ValueError("No JSON")
        session.get.return_value = resp
        with pytest.raises(UpstreamUnavailable):
            source.list_snapshots()


class TestFetchRecords:
    """Test per-snapshot content retrieval."""

    def test_records_returned(self, source, session):
        records = [{"academie": "Lyon", "nom": "Jean Dupont", "genre": "M."}]
        session.get.return_value = make_response(json_data=records)

        assert source.fetch_records("abc123") == records
        url = session.get.call_args.args[0]
        assert url == "https://raw.githubusercontent.com/owner/repo/abc123/recteurs.json"

    def test_not_found(self, source, session):
        session.get.return_value = make_response(status=404, text="404: Not Found")
        with pytest.raises(TransientFetchError) as exc_info:
            source.fetch_records("abc123")
        assert exc_info.value.snapshot_id == "abc123"

    def test_timeout_exhausted(self, source, session):
        session.get.side_effect = requests.exceptions.Timeout("read timed out")
        with pytest.raises(TransientFetchError):
            source.fetch_records("abc123")
        assert session.get.call_count == 2

    def test_invalid_json(self, source, session):
        session.get.return_value = make_response(text="[{broken")
        with pytest.raises(TransientFetchError):
            source.fetch_records("abc123")

    def test_payload_must_be_list(self, source, session):
        session.get.return_value = make_response(json_data={"academie": "Lyon"})
        with pytest.raises(TransientFetchError):
            source.fetch_records("abc123")


class TestHeaders:

    def test_default_headers(self, source, session):
        assert session.headers["User-Agent"] == "rectorwatch"
        assert "Authorization" not in session.headers

    def test_token(self, session):
        GitHubSnapshotSource(session=session, token="secret")
        assert session.headers["Authorization"] == "Bearer secret"
