"""Tests for reference dataset loading."""

from app.services.sync.reference_index import ReferenceIndex, load_reference_index


def write(path, text: str):
    path.write_text(text, encoding="utf-8")
    return path


def test_loads_entries_keyed_by_column(tmp_path):
    src = write(
        tmp_path / "cities.csv",
        "City,Population,Latitude\nMacon,153095,32.84\nAthens,127315,33.96\n",
    )

    index = load_reference_index(src, "City")

    assert index.available
    assert len(index) == 2
    assert index.get("Macon") == {"Population": "153095", "Latitude": "32.84"}
    assert index.field_names == ["Population", "Latitude"]


def test_key_column_matched_case_insensitively(tmp_path):
    src = write(tmp_path / "cities.csv", "CITY,County\nMacon,Bibb\n")

    index = load_reference_index(src, "city")

    assert index.available
    assert index.key_column == "CITY"
    assert index.get("Macon") == {"County": "Bibb"}


def test_duplicate_keys_last_row_wins(tmp_path):
    src = write(tmp_path / "c.csv", "Location,Population\nX,1\nX,2\n")

    index = load_reference_index(src, "Location")

    assert len(index) == 1
    assert index.get("X") == {"Population": "2"}


def test_blank_keys_skipped(tmp_path):
    src = write(tmp_path / "c.csv", "Location,Population\n,5\n  ,6\nY,7\n")

    index = load_reference_index(src, "Location")

    assert list(index.entries) == ["Y"]


def test_short_rows_padded_with_empty_strings(tmp_path):
    src = write(tmp_path / "c.csv", "Location,Population,County\nX,100\n")

    index = load_reference_index(src, "Location")

    assert index.get("X") == {"Population": "100", "County": ""}


def test_missing_file_is_unavailable(tmp_path):
    index = load_reference_index(tmp_path / "missing.csv", "Location")

    assert isinstance(index, ReferenceIndex)
    assert not index.available
    assert index.reason == "file not found"
    assert len(index) == 0


def test_missing_key_column_is_unavailable(tmp_path):
    src = write(tmp_path / "c.csv", "Name,Population\nX,1\n")

    index = load_reference_index(src, "Location")

    assert not index.available
    assert len(index) == 0


def test_empty_file_is_unavailable(tmp_path):
    src = write(tmp_path / "c.csv", "")

    index = load_reference_index(src, "Location")

    assert not index.available


def test_utf8_bom_header(tmp_path):
    src = tmp_path / "bom.csv"
    src.write_bytes("\ufeffLocation,Population\nX,1\n".encode("utf-8"))

    index = load_reference_index(src, "Location")

    assert index.available
    assert index.get("X") == {"Population": "1"}


class TestLocationLookup:
    def test_city_and_state_resolve_same_named_cities(self, tmp_path):
        src = write(
            tmp_path / "cities.csv",
            "City,State,Latitude\nAthens,GA,33.96\nAthens,OH,39.33\n",
        )

        index = load_reference_index(src, "City")

        assert index.get_location("Athens", "GA")["Latitude"] == "33.96"
        assert index.get_location("athens", "oh")["Latitude"] == "39.33"

    def test_falls_back_to_city_alone(self, tmp_path):
        src = write(tmp_path / "cities.csv", "City,STATE,County\nMacon,GA,Bibb\n")

        index = load_reference_index(src, "City")

        assert index.get_location("MACON", "TX") == {"STATE": "GA", "County": "Bibb"}
        assert index.get_location("Macon") == {"STATE": "GA", "County": "Bibb"}

    def test_without_state_column(self, tmp_path):
        src = write(tmp_path / "cities.csv", "City,County\nMacon,Bibb\n")

        index = load_reference_index(src, "City")

        assert index.get_location("Macon", "GA") == {"County": "Bibb"}
        assert index.get_location("Athens", "GA") is None
