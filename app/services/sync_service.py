import logging
import os
from dataclasses import dataclass, field
from typing import Any

from app.config import Settings
from app.exceptions import (
    FilesystemError,
    NoDataError,
    UnauthorizedOriginError,
    UpstreamStatusError,
    ValidationError,
)
from app.services.forms_client import FormsClient, parse_json
from app.services.sync import (
    ReferenceIndex,
    fetch_all,
    is_within,
    load_reference_index,
    merge_by_location,
    merge_records,
    resolve_path,
    serialize_records,
    split_location,
    strip_fields,
)
from app.services.sync.record_merger import CITY_FIELD

logger = logging.getLogger(__name__)

Record = dict[str, Any]

FORM_INFO_FIELDS = ("Id", "InternalName", "Name")


@dataclass
class SyncRequest:
    """Parameters of one refresh-local-file run."""

    remote_url: str
    local_file_path: str
    merge_column: str = "Location"
    merge_source_file: str | None = None
    omit_fields: list[str] = field(default_factory=list)
    split_location: bool = False


@dataclass
class SyncResult:
    entries_count: int
    file_path: str


def extract_records(body: Any) -> list[Record]:
    """
    Pull a list of records out of a single-fetch response body.

    Accepts `{"data": [...]}`, `{"data": {...}}`, a bare array, or a bare
    object. Array items that are not objects are dropped.
    """
    payload = body
    if isinstance(body, dict) and "data" in body:
        payload = body["data"]

    if isinstance(payload, dict):
        return [payload]
    if not isinstance(payload, list):
        return []

    records = [item for item in payload if isinstance(item, dict)]
    skipped = len(payload) - len(records)
    if skipped:
        logger.warning("Skipped %d non-object items in response", skipped)
    return records


def strip_denylisted(body: Any, fields: list[str]) -> Any:
    """Remove denylisted fields from an object or from each object of an array."""
    if isinstance(body, dict):
        return strip_fields(body, fields)
    if isinstance(body, list):
        return [strip_fields(item, fields) if isinstance(item, dict) else item for item in body]
    return body


class SyncGateway:
    """
    Orchestrates forms API fetches, reference merging and CSV output.

    One instance serves one request; it holds no state beyond its settings
    and client.
    """

    def __init__(self, settings: Settings, client: FormsClient):
        self.settings = settings
        self.client = client
        self.data_root = os.path.abspath(settings.data_root)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def resolve(self, user_path: str) -> str:
        resolved = resolve_path(self.data_root, user_path)
        if not is_within(self.data_root, resolved):
            logger.warning(
                "Path %s resolves outside data root %s: %s",
                user_path,
                self.data_root,
                resolved,
            )
        return str(resolved)

    def write_csv(self, user_path: str, records: list[Record]) -> None:
        """Serialize records and overwrite the file at user_path."""
        text = serialize_records(records)
        target = self.resolve(user_path)
        try:
            os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
            with open(target, "w", newline="", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            logger.error("Failed to write %s: %s", target, e)
            raise FilesystemError(user_path, e) from e
        logger.info("Wrote %d rows to %s", len(records), target)

    def load_reference(self, source_file: str, key_column: str) -> ReferenceIndex:
        return load_reference_index(self.resolve(source_file), key_column)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def fetch_records(self, url: str, omit_fields: list[str]) -> list[Record]:
        """Walk bulk-entry URLs; fetch anything else once."""
        if self.client.is_bulk_entries_url(url):
            logger.info("Fetching paginated entries from %s", url)
            return fetch_all(
                self.client, url, omit_fields, self.settings.forms_max_entries
            )

        logger.info("Fetching %s", url)
        body = self.client.get_json(url, authenticated=self.client.is_trusted(url))
        records = extract_records(body)
        if not records:
            raise NoDataError(f"No data received from API: {url}")
        return [strip_fields(record, omit_fields) for record in records]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def refresh_local_file(self, request: SyncRequest) -> SyncResult:
        """
        Fetch remote records, optionally enrich them, and overwrite a CSV.

        Either the whole record set is written or nothing is.

        With split_location, merge_column names the record column holding
        "City, State" values and the reference is matched on its City
        column (and State, when it has one).
        """
        if not request.remote_url:
            raise ValidationError("api_url is required", field="api_url")
        if not request.local_file_path:
            raise ValidationError(
                "local_file_path is required", field="local_file_path"
            )

        reference: ReferenceIndex | None = None
        if request.merge_source_file:
            key_column = CITY_FIELD if request.split_location else request.merge_column
            reference = self.load_reference(request.merge_source_file, key_column)
            if not reference.available:
                logger.warning(
                    "Skipping merge with %s: %s",
                    request.merge_source_file,
                    reference.reason,
                )

        records = self.fetch_records(request.remote_url, request.omit_fields)

        if request.split_location:
            split_location(records, request.merge_column)

        if reference is not None and reference.available:
            if request.split_location:
                merge_by_location(records, reference)
            else:
                merge_records(records, reference, request.merge_column)

        self.write_csv(request.local_file_path, records)
        return SyncResult(
            entries_count=len(records), file_path=request.local_file_path
        )

    def save_dataset(self, records: list[Any], file_path: str) -> SyncResult:
        """Write caller-supplied records straight to CSV."""
        if not file_path:
            raise ValidationError("file_path is required", field="file_path")
        if any(not isinstance(record, dict) for record in records):
            raise ValidationError("data must be a list of objects", field="data")

        self.write_csv(file_path, records)
        return SyncResult(entries_count=len(records), file_path=file_path)

    def proxy_get(self, url: str) -> Any:
        """
        Forward a GET to the forms API with credentials attached.

        Only URLs on the configured API's origin are forwarded.
        """
        if not url:
            raise ValidationError("url is required", field="url")
        if not self.client.is_trusted(url):
            raise UnauthorizedOriginError(url, self.client.trusted_origin)

        strip = list(self.settings.proxy_strip_fields)
        if self.client.is_bulk_entries_url(url):
            return fetch_all(self.client, url, strip, self.settings.forms_max_entries)

        response = self.client.get(url)
        if not response.is_success:
            logger.error(
                "Proxy error from %s (%s): %s", url, response.status_code, response.text
            )
            raise UpstreamStatusError(url, response.status_code, response.text)
        return strip_denylisted(parse_json(response, url), strip)

    def list_collections(self) -> list[dict[str, Any]]:
        """List forms available to the configured key."""
        body = self.client.get_json(self.client.base_url)
        if not isinstance(body, list):
            return []
        return [
            {name: form.get(name) for name in FORM_INFO_FIELDS}
            for form in body
            if isinstance(form, dict)
        ]

    def get_collection_entries(self, collection_id: str) -> list[Any]:
        """Single, non-paginated fetch of one form's entries."""
        url = f"{self.client.base_url}/{collection_id}/entries"
        body = self.client.get_json(url)
        if isinstance(body, list):
            return body
        return extract_records(body)

    def test_connection(self) -> dict[str, Any]:
        """Check that the configured key is accepted by the API."""
        url = self.client.base_url
        response = self.client.get(url)
        if not response.is_success:
            raise UpstreamStatusError(url, response.status_code, response.text)
        return {
            "status": response.status_code,
            "status_text": response.reason_phrase,
            "api_url": url,
            "authenticated": True,
        }
