"""Tests for sequential-ID pagination."""

import httpx
import pytest

from app.exceptions import (
    ConfigurationError,
    PaginationLimitError,
    ParseError,
    UpstreamTransportError,
)
from app.services.forms_client import FormsClient
from app.services.sync.paginated_fetcher import entry_url, fetch_all


@pytest.fixture
def entries_url(base_url) -> str:
    return f"{base_url}/7/entries"


class TestEntryUrl:
    def test_appends_id_to_path(self):
        assert entry_url("https://h.io/f/7/entries", 3) == "https://h.io/f/7/entries/3"

    def test_trailing_slash(self):
        assert entry_url("https://h.io/f/7/entries/", 3) == "https://h.io/f/7/entries/3"

    def test_query_string_kept_after_id(self):
        assert entry_url("https://h.io/f/7/entries?top=10", 1) == (
            "https://h.io/f/7/entries/1?top=10"
        )

    def test_query_and_trailing_slash(self):
        assert entry_url("https://h.io/f/7/entries/?top=10&a=b", 2) == (
            "https://h.io/f/7/entries/2?top=10&a=b"
        )


def test_fetches_until_404(forms_client, upstream, entries_url):
    """N entries means exactly N+1 requests, records returned in ID order."""
    upstream.add_entries("7", [{"Id": "7-1"}, {"Id": "7-2"}, {"Id": "7-3"}])

    records = fetch_all(forms_client, entries_url)

    assert [r["Id"] for r in records] == ["7-1", "7-2", "7-3"]
    assert upstream.urls == [f"{entries_url}/{i}" for i in range(1, 5)]


def test_requests_carry_bearer_token(forms_client, upstream, entries_url):
    upstream.add_entries("7", [{"Id": "7-1"}])

    fetch_all(forms_client, entries_url)

    assert all(
        call.headers["Authorization"] == "Bearer test-key" for call in upstream.calls
    )


def test_query_string_carried_to_every_entry(forms_client, upstream, entries_url):
    upstream.add(f"{entries_url}/1?top=10", json={"Id": "1"})
    upstream.add(f"{entries_url}/2?top=10", json={"Id": "2"})

    records = fetch_all(forms_client, f"{entries_url}?top=10")

    assert records == [{"Id": "1"}, {"Id": "2"}]
    assert upstream.urls == [f"{entries_url}/{i}?top=10" for i in range(1, 4)]


def test_non_404_failure_stops_without_error(forms_client, upstream, entries_url):
    upstream.add_entries("7", [{"Id": "7-1"}, {"Id": "7-2"}, {"Id": "7-3"}])
    upstream.add(f"{entries_url}/3", status=500, text="boom")

    records = fetch_all(forms_client, entries_url)

    assert [r["Id"] for r in records] == ["7-1", "7-2"]
    assert len(upstream.calls) == 3


def test_omit_fields_removed(forms_client, upstream, entries_url):
    upstream.add_entries(
        "7", [{"Id": "1", "Email": "a@b.c", "Name": "A"}, {"Id": "2", "Name": "B"}]
    )

    records = fetch_all(forms_client, entries_url, omit_fields=["Email", "Missing"])

    assert records == [{"Id": "1", "Name": "A"}, {"Id": "2", "Name": "B"}]


def test_empty_collection(forms_client, upstream, entries_url):
    assert fetch_all(forms_client, entries_url) == []
    assert len(upstream.calls) == 1


def test_trailing_slash_on_base_url(forms_client, upstream, entries_url):
    upstream.add_entries("7", [{"Id": "1"}])

    records = fetch_all(forms_client, entries_url + "/")

    assert len(records) == 1


class TestMaxEntries:
    def test_more_entries_than_bound_raises(self, forms_client, upstream, entries_url):
        upstream.add_entries("7", [{"Id": str(i)} for i in range(1, 11)])

        with pytest.raises(PaginationLimitError) as exc_info:
            fetch_all(forms_client, entries_url, max_entries=4)

        assert exc_info.value.max_entries == 4
        assert exc_info.value.status_code == 502
        # Entries 1-4 plus the one that proves the collection is larger
        assert len(upstream.calls) == 5

    def test_exactly_bound_entries_succeeds(self, forms_client, upstream, entries_url):
        upstream.add_entries("7", [{"Id": str(i)} for i in range(1, 5)])

        records = fetch_all(forms_client, entries_url, max_entries=4)

        assert [r["Id"] for r in records] == ["1", "2", "3", "4"]
        assert upstream.urls[-1] == f"{entries_url}/5"


def test_malformed_json_is_fatal(forms_client, upstream, entries_url):
    upstream.add_entries("7", [{"Id": "1"}])
    upstream.add(f"{entries_url}/2", text="<html>not json</html>")

    with pytest.raises(ParseError):
        fetch_all(forms_client, entries_url)


def test_non_object_body_is_fatal(forms_client, upstream, entries_url):
    upstream.add(f"{entries_url}/1", json=[1, 2, 3])

    with pytest.raises(ParseError):
        fetch_all(forms_client, entries_url)


def test_transport_failure_is_fatal(settings, entries_url):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with FormsClient(settings, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(UpstreamTransportError) as exc_info:
            fetch_all(client, entries_url)

    assert f"{entries_url}/1" in str(exc_info.value)


def test_missing_api_key_fails_before_request(settings, upstream, entries_url):
    settings.forms_api_key = ""

    with FormsClient(settings, transport=httpx.MockTransport(upstream)) as client:
        with pytest.raises(ConfigurationError):
            fetch_all(client, entries_url)

    assert upstream.calls == []
