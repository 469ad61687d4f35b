"""
Reference dataset loading.

A reference dataset is a local CSV (cities, counties, countries...) whose
rows are keyed by one column. The other columns are merged into fetched
records that share the key.
"""

import csv
import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

ReferenceEntry = dict[str, str]


@dataclass
class ReferenceIndex:
    """
    Lookup from key-column value to the rest of that reference row.

    `available` is False when the source could not be used; callers then
    skip enrichment instead of failing. `reason` says why.
    """

    key_column: str
    entries: dict[str, ReferenceEntry] = field(default_factory=dict)
    field_names: list[str] = field(default_factory=list)
    available: bool = True
    reason: str | None = None
    # Lowercased key and, when a State column exists, "key|state"
    location_entries: dict[str, ReferenceEntry] = field(default_factory=dict)

    @classmethod
    def unavailable(cls, key_column: str, reason: str) -> "ReferenceIndex":
        return cls(key_column=key_column, available=False, reason=reason)

    def get(self, key: str) -> ReferenceEntry | None:
        return self.entries.get(key)

    def get_location(self, city: str, state: str | None = None) -> ReferenceEntry | None:
        """
        Case-insensitive lookup by city and state, falling back to city alone.

        Same-named cities in different states resolve to their own rows as
        long as the state is given.
        """
        city_key = city.strip().lower()
        if state and state.strip():
            entry = self.location_entries.get(f"{city_key}|{state.strip().lower()}")
            if entry is not None:
                return entry
        return self.location_entries.get(city_key)

    def __len__(self) -> int:
        return len(self.entries)


def _find_column(fieldnames: list[str], wanted: str) -> str | None:
    """Header lookup ignoring case and surrounding whitespace."""
    target = wanted.strip().lower()
    for name in fieldnames:
        if name is not None and name.strip().lower() == target:
            return name
    return None


def load_reference_index(path: str | os.PathLike, key_column: str) -> ReferenceIndex:
    """
    Load a reference CSV into a ReferenceIndex keyed by key_column.

    Never raises for unreadable input: a missing file, an unreadable header,
    a missing key column or a malformed CSV all produce an unavailable
    index, logged as a warning. Later rows overwrite earlier ones with the
    same key.
    """
    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            fieldnames = reader.fieldnames
            if not fieldnames:
                logger.warning("Reference file %s has no header row", path)
                return ReferenceIndex.unavailable(key_column, "missing header row")

            key_name = _find_column(list(fieldnames), key_column)
            if key_name is None:
                logger.warning(
                    "Merge column '%s' not found in %s (columns: %s)",
                    key_column,
                    path,
                    ", ".join(fieldnames),
                )
                return ReferenceIndex.unavailable(
                    key_column, f"column '{key_column}' not in reference header"
                )

            field_names = [name for name in fieldnames if name != key_name]
            state_name = _find_column(field_names, "State")
            entries: dict[str, ReferenceEntry] = {}
            location_entries: dict[str, ReferenceEntry] = {}
            for row in reader:
                key = row.get(key_name)
                if not key or not key.strip():
                    continue
                entry = {name: row.get(name) or "" for name in field_names}
                entries[key] = entry

                city_key = key.strip().lower()
                location_entries[city_key] = entry
                state = entry.get(state_name, "") if state_name else ""
                if state.strip():
                    location_entries[f"{city_key}|{state.strip().lower()}"] = entry

    except FileNotFoundError:
        logger.warning("Reference file not found: %s", path)
        return ReferenceIndex.unavailable(key_column, "file not found")
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        logger.warning("Failed to read reference file %s: %s", path, e)
        return ReferenceIndex.unavailable(key_column, str(e))

    logger.info(
        "Loaded %d reference entries from %s keyed by '%s'",
        len(entries),
        path,
        key_name,
    )
    return ReferenceIndex(
        key_column=key_name,
        entries=entries,
        field_names=field_names,
        location_entries=location_entries,
    )
