"""
Tabular file reader.
Single responsibility: turn an uploaded CSV or spreadsheet into a Dataset.
"""

import io
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union
import pandas as pd

from ..core.dataset import Dataset, Record
from ..core.errors import EmptyFileError, UnsupportedFormatError
from ..utils.converters import cell_to_text
from ..utils.logger import get_logger


logger = get_logger()


SUPPORTED_EXTENSIONS = {
    ".csv": "csv",
    ".xlsx": "excel",
    ".xls": "excel",
}

# Tried in order; latin-1 decodes any byte sequence so it is the last resort
CSV_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")

# Same record breaks the scanner honours: CRLF, bare CR or bare LF
LINE_BREAK = re.compile(r"\r\n|\r|\n")


def parse_header(line: str) -> List[str]:
    """
    Split a header line into column names.

    Names are trimmed and lose one leading and one trailing double quote.
    """
    columns = []
    for raw in line.split(","):
        name = raw.strip()
        if name.startswith('"'):
            name = name[1:]
        if name.endswith('"'):
            name = name[:-1]
        columns.append(name)
    return columns


def split_header(text: str) -> Tuple[str, str]:
    """Separate the header line from the body at the first line break."""
    parts = LINE_BREAK.split(text, maxsplit=1)
    return parts[0], parts[1] if len(parts) > 1 else ""


def _finish_field(chars: List[Tuple[str, bool]]) -> str:
    """Join scanned characters, trimming whitespace that was not quoted."""
    start, end = 0, len(chars)
    while start < end and not chars[start][1] and chars[start][0].isspace():
        start += 1
    while end > start and not chars[end - 1][1] and chars[end - 1][0].isspace():
        end -= 1
    return "".join(ch for ch, _ in chars[start:end])


def scan_csv_records(text: str) -> Iterator[List[str]]:
    """
    Quote-aware scanner yielding one list of field values per record.

    A double quote toggles the inside-literal state, two consecutive quotes
    inside a literal produce one quote character, and commas or line breaks
    only separate fields and records outside a literal. Blank lines are
    skipped.

    Args:
        text: Delimited text without the header line

    Yields:
        Field values of each record
    """
    fields: List[str] = []
    chars: List[Tuple[str, bool]] = []
    in_quotes = False
    quoted_record = False
    i = 0
    length = len(text)

    def end_record() -> Optional[List[str]]:
        record = fields + [_finish_field(chars)]
        if record == [""] and not quoted_record:
            return None
        return record

    while i < length:
        ch = text[i]

        if ch == '"':
            quoted_record = True
            if in_quotes and i + 1 < length and text[i + 1] == '"':
                chars.append(('"', True))
                i += 2
                continue
            in_quotes = not in_quotes
        elif in_quotes:
            chars.append((ch, True))
        elif ch == ",":
            fields.append(_finish_field(chars))
            chars = []
        elif ch in "\r\n":
            if ch == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            record = end_record()
            if record is not None:
                yield record
            fields, chars, quoted_record = [], [], False
        else:
            chars.append((ch, False))
        i += 1

    if fields or chars or quoted_record:
        record = end_record()
        if record is not None:
            yield record


def _unique_columns(columns: Sequence[str], source: str) -> List[str]:
    """First occurrence of each column name, in file order."""
    seen: Dict[str, None] = {}
    for col in columns:
        seen.setdefault(col, None)
    if len(seen) != len(columns):
        logger.warning("file_reader.duplicate_columns",
                      file=source,
                      columns=len(columns),
                      unique=len(seen))
    return list(seen)


class TabularFileReader:
    """
    Reads delimited text and single-sheet spreadsheets into Datasets.

    The reader is pure: it only reads the bytes it is given.
    """

    def detect_format(self, filename: str) -> str:
        """
        Map a file name to its reader kind.

        Raises:
            UnsupportedFormatError: If the extension is not supported
        """
        suffix = Path(filename).suffix.lower()
        kind = SUPPORTED_EXTENSIONS.get(suffix)
        if kind is None:
            raise UnsupportedFormatError(filename, suffix)
        return kind

    def read(self, file_path: Union[str, Path], name: Optional[str] = None) -> Dataset:
        """
        Read any supported file type.

        Args:
            file_path: Path to the uploaded file
            name: Display/original file name (defaults to the path's name);
                its extension selects the reader

        Returns:
            Parsed dataset

        Raises:
            UnsupportedFormatError: If the file type is not supported
            EmptyFileError: If the file has no header or no data rows
        """
        file_path = Path(file_path)
        name = name or file_path.name

        # Reject unsupported types before touching the file
        self.detect_format(name)

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        return self.read_bytes(file_path.read_bytes(), name)

    def read_bytes(self, content: bytes, filename: str) -> Dataset:
        """Parse already-loaded file content; ``filename`` selects the reader."""
        kind = self.detect_format(filename)

        if kind == "csv":
            return self.read_csv_text(self._decode(content, filename), filename)
        return self.read_excel(content, filename)

    def read_columns(self, file_path: Union[str, Path], name: Optional[str] = None) -> List[str]:
        """
        Read only the header of a file.

        Used to offer column choices before a comparison is configured.
        """
        file_path = Path(file_path)
        name = name or file_path.name
        kind = self.detect_format(name)

        if kind == "csv":
            text = self._decode(file_path.read_bytes(), name).strip()
            if not text:
                raise EmptyFileError(name, "has no header row")
            return _unique_columns(parse_header(split_header(text)[0]), name)

        frame = pd.read_excel(io.BytesIO(file_path.read_bytes()),
                              sheet_name=0, header=None, dtype=object, nrows=1)
        if frame.empty:
            raise EmptyFileError(name, "has no header row")
        return _unique_columns(self._excel_header(frame.iloc[0].tolist()), name)

    def read_csv_text(self, text: str, source: str = "<text>") -> Dataset:
        """
        Parse delimited text into a dataset.

        Records whose field count differs from the header are dropped.
        """
        logger.info("file_reader.csv.reading", file=source)

        text = text.strip()
        if not text:
            raise EmptyFileError(source, "has no header row")

        header_line, body = split_header(text)
        header = parse_header(header_line)
        columns = _unique_columns(header, source)

        rows: List[Record] = []
        dropped = 0
        scanned = 0
        for values in scan_csv_records(body):
            scanned += 1
            if len(values) != len(header):
                dropped += 1
                continue
            rows.append(dict(zip(header, values)))

        if scanned == 0:
            raise EmptyFileError(source, "contains no data rows")
        if not rows:
            raise EmptyFileError(source, "contains no well-formed data rows")

        if dropped:
            logger.debug("file_reader.csv.dropped_rows",
                        file=source,
                        dropped=dropped)

        logger.info("file_reader.csv.loaded",
                   file=source,
                   rows=len(rows),
                   columns=len(columns))

        return Dataset.from_records(columns, rows, name=source)

    def read_excel(self, content: bytes, source: str = "<workbook>") -> Dataset:
        """
        Parse the first sheet of a workbook.

        The first row is the header; missing cells become empty strings and
        fully blank rows are skipped.
        """
        logger.info("file_reader.excel.reading", file=source, sheet=0)

        frame = pd.read_excel(io.BytesIO(content), sheet_name=0,
                              header=None, dtype=object)

        if frame.empty:
            raise EmptyFileError(source, "has no header row")

        header = self._excel_header(frame.iloc[0].tolist())
        columns = _unique_columns(header, source)

        rows: List[Record] = []
        for values in frame.iloc[1:].itertuples(index=False, name=None):
            texts = [cell_to_text(v) for v in values]
            if not any(texts):
                continue
            rows.append(dict(zip(header, texts)))

        if not rows:
            raise EmptyFileError(source, "contains no data rows")

        logger.info("file_reader.excel.loaded",
                   file=source,
                   rows=len(rows),
                   columns=len(columns))

        return Dataset.from_records(columns, rows, name=source)

    def _excel_header(self, cells: List[object]) -> List[str]:
        names = []
        for index, cell in enumerate(cells):
            name = cell_to_text(cell).strip()
            names.append(name or f"Unnamed: {index}")
        return names

    def _decode(self, content: bytes, source: str) -> str:
        """Decode text trying encodings in order of likelihood."""
        for encoding in CSV_ENCODINGS:
            try:
                text = content.decode(encoding)
            except UnicodeDecodeError:
                continue
            if encoding != CSV_ENCODINGS[0]:
                logger.warning("file_reader.csv.encoding_fallback",
                              file=source,
                              encoding=encoding)
            return text
        # latin-1 accepts every byte, so this is unreachable in practice
        return content.decode("utf-8", errors="replace")
