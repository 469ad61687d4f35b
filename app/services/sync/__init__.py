"""Sync pipeline package: fetch, enrich and serialize forms API records."""

from app.services.sync.csv_serializer import (
    CsvDocument,
    build_document,
    serialize_records,
)
from app.services.sync.paginated_fetcher import fetch_all, strip_fields
from app.services.sync.path_resolver import is_within, resolve_path
from app.services.sync.record_merger import (
    merge_by_location,
    merge_records,
    split_location,
)
from app.services.sync.reference_index import ReferenceIndex, load_reference_index

__all__ = [
    "CsvDocument",
    "build_document",
    "serialize_records",
    "fetch_all",
    "strip_fields",
    "is_within",
    "resolve_path",
    "merge_by_location",
    "merge_records",
    "split_location",
    "ReferenceIndex",
    "load_reference_index",
]
