"""
Unit tests for TabularFileReader and the quote-aware CSV scanner.
"""

import pytest
from pathlib import Path
import sys

import pandas as pd

# Add project root to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from tabdiff.adapters.file_reader import (
    TabularFileReader, parse_header, scan_csv_records, split_header,
)
from tabdiff.core.errors import EmptyFileError, UnsupportedFormatError
from tabdiff.reports.serializer import escape_field


class TestScanCsvRecords:
    """Test cases for the record scanner."""

    def test_plain_fields(self):
        assert list(scan_csv_records("1,x\n2,y\n")) == [["1", "x"], ["2", "y"]]

    def test_quoted_comma_is_part_of_field(self):
        assert list(scan_csv_records('1,"Smith, John"')) == [["1", "Smith, John"]]

    def test_doubled_quotes_unescape_to_one(self):
        assert list(scan_csv_records('1,"say ""hi"""')) == [["1", 'say "hi"']]

    def test_quoted_newline_stays_in_field(self):
        records = list(scan_csv_records('1,"line1\nline2"\n2,b'))

        assert records == [["1", "line1\nline2"], ["2", "b"]]

    def test_crlf_line_endings(self):
        assert list(scan_csv_records("1,x\r\n2,y\r\n")) == [["1", "x"], ["2", "y"]]

    def test_unquoted_whitespace_is_trimmed_quoted_is_kept(self):
        assert list(scan_csv_records('  a  ," b "')) == [["a", " b "]]

    def test_blank_lines_are_skipped(self):
        assert list(scan_csv_records("1,x\n\n2,y\n")) == [["1", "x"], ["2", "y"]]

    def test_empty_quoted_field(self):
        assert list(scan_csv_records('x,""')) == [["x", ""]]

    def test_escaped_field_round_trips(self):
        """Escaping then scanning returns the original value."""
        original = 'a,"b"\nc'

        records = list(scan_csv_records(escape_field(original)))

        assert records == [[original]]


class TestParseHeader:
    """Test cases for header parsing."""

    def test_trims_and_strips_one_quote_layer(self):
        assert parse_header(' "id" , "full name",amount ') == ["id", "full name", "amount"]

    def test_keeps_inner_quotes(self):
        assert parse_header('""quoted""') == ['"quoted"']


class TestSplitHeader:
    """Test cases for separating the header line."""

    @pytest.mark.parametrize("text", ["id,name\n1,x", "id,name\r\n1,x", "id,name\r1,x"])
    def test_any_line_break(self, text):
        assert split_header(text) == ("id,name", "1,x")

    def test_header_only(self):
        assert split_header("id,name") == ("id,name", "")


class TestTabularFileReaderCsv:
    """Test cases for delimited text parsing."""

    def setup_method(self):
        """Set up test fixtures."""
        self.reader = TabularFileReader()

    def test_reads_columns_and_rows_in_file_order(self):
        dataset = self.reader.read_csv_text("id,name\n1,x\n2,y\n", "a.csv")

        assert dataset.columns == ("id", "name")
        assert dataset.rows == ({"id": "1", "name": "x"}, {"id": "2", "name": "y"})
        assert dataset.name == "a.csv"

    def test_malformed_rows_are_dropped(self):
        dataset = self.reader.read_csv_text("id,name\n1,x\n2\n3,z,extra\n4,w\n", "a.csv")

        assert [row["id"] for row in dataset.rows] == ["1", "4"]

    def test_empty_text_raises(self):
        with pytest.raises(EmptyFileError):
            self.reader.read_csv_text("   \n", "empty.csv")

    def test_header_only_raises(self):
        with pytest.raises(EmptyFileError) as exc_info:
            self.reader.read_csv_text("id,name\n", "header.csv")

        assert "header.csv" in str(exc_info.value)

    def test_only_malformed_rows_raises(self):
        with pytest.raises(EmptyFileError):
            self.reader.read_csv_text("id,name\n1\n2\n", "bad.csv")

    def test_bare_carriage_return_line_endings(self):
        dataset = self.reader.read_csv_text("id,name\r1,x\r2,y\r", "mac.csv")

        assert dataset.columns == ("id", "name")
        assert [row["id"] for row in dataset.rows] == ["1", "2"]

    def test_crlf_header_has_no_trailing_carriage_return(self):
        dataset = self.reader.read_csv_text("id,name\r\n1,x\r\n", "win.csv")

        assert dataset.columns == ("id", "name")
        assert dataset.rows == ({"id": "1", "name": "x"},)

    def test_utf8_bom_is_removed_from_first_column(self):
        content = "\ufeffid,name\n1,x\n".encode("utf-8")

        dataset = self.reader.read_bytes(content, "bom.csv")

        assert dataset.columns == ("id", "name")

    def test_latin1_fallback(self):
        content = "id,name\n1,caf\xe9\n".encode("latin-1")

        dataset = self.reader.read_bytes(content, "latin.csv")

        assert dataset.rows[0]["name"] == "café"

    def test_read_from_path_uses_display_name(self, tmp_path):
        upload = tmp_path / "upload_1234"
        upload.write_text("id\n1\n", encoding="utf-8")

        dataset = self.reader.read(upload, name="customers.csv")

        assert dataset.name == "customers.csv"
        assert dataset.row_count == 1

    def test_read_columns_only_needs_header(self, tmp_path):
        path = tmp_path / "header.csv"
        path.write_text("id,name\n", encoding="utf-8")

        assert self.reader.read_columns(path) == ["id", "name"]

    def test_read_columns_splits_header_like_the_scanner(self, tmp_path):
        path = tmp_path / "mac.csv"
        path.write_bytes(b"id,name\r1,x\r")

        assert self.reader.read_columns(path) == ["id", "name"]
        assert self.reader.read(path).row_count == 1


class TestTabularFileReaderFormats:
    """Test cases for format detection and spreadsheets."""

    def setup_method(self):
        """Set up test fixtures."""
        self.reader = TabularFileReader()

    @pytest.mark.parametrize("filename", ["data.json", "data.txt", "data"])
    def test_unsupported_extension_raises(self, filename):
        with pytest.raises(UnsupportedFormatError):
            self.reader.read_bytes(b"id\n1\n", filename)

    def test_unsupported_extension_checked_before_file_access(self, tmp_path):
        with pytest.raises(UnsupportedFormatError):
            self.reader.read(tmp_path / "missing.parquet")

    def test_extension_is_case_insensitive(self):
        assert self.reader.detect_format("DATA.CSV") == "csv"
        assert self.reader.detect_format("Book.XLSX") == "excel"

    def test_reads_first_sheet_with_empty_cells_as_blank(self, tmp_path):
        path = tmp_path / "book.xlsx"
        with pd.ExcelWriter(path) as writer:
            pd.DataFrame({"id": [1, 2], "name": ["x", None]}).to_excel(
                writer, sheet_name="First", index=False)
            pd.DataFrame({"other": ["ignored"]}).to_excel(
                writer, sheet_name="Second", index=False)

        dataset = self.reader.read(path)

        assert dataset.columns == ("id", "name")
        assert dataset.rows == ({"id": "1", "name": "x"}, {"id": "2", "name": ""})

    def test_header_only_workbook_raises(self, tmp_path):
        path = tmp_path / "header.xlsx"
        pd.DataFrame(columns=["id", "name"]).to_excel(path, index=False)

        with pytest.raises(EmptyFileError):
            self.reader.read(path)

        assert self.reader.read_columns(path) == ["id", "name"]
