"""Sequential-ID pagination over a forms API entries collection."""

import logging
from collections.abc import Iterable
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from app.exceptions import PaginationLimitError, ParseError
from app.services.forms_client import FormsClient, parse_json

logger = logging.getLogger(__name__)

Record = dict[str, Any]


def strip_fields(record: Record, fields: Iterable[str]) -> Record:
    """Remove the named fields from a record in place."""
    for name in fields:
        record.pop(name, None)
    return record


def entry_url(base_url: str, entry_id: int) -> str:
    """
    URL of one entry under a collection URL.

    The ID is appended to the path; any query string stays a query string.
    """
    parts = urlsplit(base_url)
    path = f"{parts.path.rstrip('/')}/{entry_id}"
    return urlunsplit(parts._replace(path=path))


def fetch_all(
    client: FormsClient,
    base_url: str,
    omit_fields: Iterable[str] = (),
    max_entries: int = 10000,
) -> list[Record]:
    """
    Fetch every entry of a collection by requesting `{base_url}/1`, `/2`, ...

    The API has no cursor, so the first 404 marks the end. Any other
    non-success status also stops the walk; what was collected so far is
    returned and the body is only logged. Transport failures and malformed
    JSON propagate and abort the whole fetch.

    A collection with more than max_entries entries raises
    PaginationLimitError rather than returning a truncated list. A gap in
    the upstream ID sequence ends pagination at the gap.
    """
    omit = list(omit_fields)
    records: list[Record] = []

    # One request past the bound tells a full collection from a truncated one
    for entry_id in range(1, max_entries + 2):
        url = entry_url(base_url, entry_id)
        response = client.get(url)

        if response.status_code == 404:
            logger.info("Reached end of collection at entry %d (%s)", entry_id, base_url)
            break

        if not response.is_success:
            logger.warning(
                "Stopping pagination at entry %d: status %s, body: %s",
                entry_id,
                response.status_code,
                response.text,
            )
            break

        if entry_id > max_entries:
            logger.error(
                "More than %d entries in %s; refusing a partial fetch",
                max_entries,
                base_url,
            )
            raise PaginationLimitError(base_url, max_entries)

        record = parse_json(response, url)
        if not isinstance(record, dict):
            raise ParseError(url, f"expected a JSON object, got {type(record).__name__}")

        records.append(strip_fields(record, omit))

    logger.info("Fetched %d entries from %s", len(records), base_url)
    return records
