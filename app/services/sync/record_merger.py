"""Join fetched records with a reference dataset."""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from app.services.sync.reference_index import ReferenceEntry, ReferenceIndex

logger = logging.getLogger(__name__)

Record = dict[str, Any]

# Fields written by split_location and read by merge_by_location
CITY_FIELD = "City"
STATE_FIELD = "State"

# Coordinate columns arrive in several casings across datasets
CASE_FOLDED_FIELDS = ("latitude", "longitude")

STATE_CODES = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "florida": "FL", "georgia": "GA", "hawaii": "HI", "idaho": "ID",
    "illinois": "IL", "indiana": "IN", "iowa": "IA", "kansas": "KS",
    "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN",
    "mississippi": "MS", "missouri": "MO", "montana": "MT", "nebraska": "NE",
    "nevada": "NV", "new hampshire": "NH", "new jersey": "NJ",
    "new mexico": "NM", "new york": "NY", "north carolina": "NC",
    "north dakota": "ND", "ohio": "OH", "oklahoma": "OK", "oregon": "OR",
    "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
    "south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT",
    "vermont": "VT", "virginia": "VA", "washington": "WA",
    "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY",
    "district of columbia": "DC",
}


def field_variants(name: str) -> tuple[str, ...]:
    """
    Names under which a field counts as already present on a record.

    Latitude/Longitude match as Title, UPPER and lower case; every other
    field matches only itself.
    """
    lowered = name.lower()
    if lowered in CASE_FOLDED_FIELDS:
        return (lowered.capitalize(), lowered.upper(), lowered)
    return (name,)


def has_field(record: Record, name: str) -> bool:
    return any(variant in record for variant in field_variants(name))


def _fill_missing(record: Record, values: Iterable[tuple[str, Any]]) -> int:
    added = 0
    for name, value in values:
        if not has_field(record, name):
            record[name] = value
            added += 1
    return added


def _merge(
    records: list[Record],
    lookup: Callable[[Record], tuple[str, ReferenceEntry | None] | None],
    field_names: list[str],
    label: str,
) -> list[Record]:
    """
    Shared merge loop. `lookup` returns None to leave a record alone, or
    the value it looked up together with the matching entry (or None).
    """
    matched = 0
    unmatched: set[str] = set()

    for record in records:
        found = lookup(record)
        if found is None:
            continue

        key, entry = found
        if entry is not None:
            _fill_missing(record, entry.items())
            matched += 1
        else:
            _fill_missing(record, ((name, "") for name in field_names))
            unmatched.add(key)

    logger.info("Merged %d of %d records on '%s'", matched, len(records), label)
    if unmatched:
        logger.info(
            "%d '%s' values not found in reference data: %s",
            len(unmatched),
            label,
            ", ".join(sorted(unmatched)),
        )
    return records


def merge_records(
    records: list[Record],
    index: ReferenceIndex,
    key_column: str,
    field_names: Iterable[str] | None = None,
) -> list[Record]:
    """
    Add reference columns to each record whose key_column value is indexed.

    Existing fields are never overwritten. Records without a match still
    get every reference field (as "") so all rows share one column set.
    Records whose key is missing or not a string are left as they are.
    Mutates and returns `records`.
    """
    names = list(index.field_names if field_names is None else field_names)

    def lookup(record: Record):
        key = record.get(key_column)
        if not isinstance(key, str):
            return None
        return key, index.get(key)

    return _merge(records, lookup, names, key_column)


def merge_by_location(
    records: list[Record],
    index: ReferenceIndex,
    field_names: Iterable[str] | None = None,
) -> list[Record]:
    """
    Merge on the City/State fields produced by split_location.

    Tries "city|state" first and falls back to the city alone, both
    case-insensitive, so two cities sharing a name stay apart when the
    record carries a state. Records without a City are left as they are.
    """
    names = list(index.field_names if field_names is None else field_names)

    def lookup(record: Record):
        city = record.get(CITY_FIELD)
        if not isinstance(city, str) or not city.strip():
            return None
        state = record.get(STATE_FIELD)
        if not isinstance(state, str):
            state = None
        label = f"{city}, {state}" if state else city
        return label, index.get_location(city, state)

    return _merge(records, lookup, names, f"{CITY_FIELD}/{STATE_FIELD}")


def split_location(records: list[Record], column: str = "Location") -> list[Record]:
    """
    Derive City and State fields from "City, State" location values.

    Full US state names become two-letter codes; anything else after the
    first comma is kept as written. A value without a comma only yields
    City. Fields already present are not overwritten.
    """
    for record in records:
        value = record.get(column)
        if not isinstance(value, str) or not value.strip():
            continue

        city, sep, state = value.partition(",")
        if CITY_FIELD not in record:
            record[CITY_FIELD] = city.strip()
        if sep and STATE_FIELD not in record:
            state = state.strip()
            record[STATE_FIELD] = STATE_CODES.get(state.lower(), state)

    return records
