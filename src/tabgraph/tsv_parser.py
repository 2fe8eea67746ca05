"""
TSV Parser for tabgraph (Layer 1: Raw Input -> header + rows).

Reads the tab-delimited record files every source dataset is delivered in.

Format Notes:
    - Optional leading byte-order mark (stripped)
    - First logical line is the header
    - Any field may be wrapped in one layer of double quotes
    - "" inside a quoted field is one literal quote
    - Tabs, CR and LF inside an open quoted field belong to the field

Algorithm:
    Two passes over the same quote-tracking state machine. Pass 1 splits the
    document into logical lines, honouring line breaks only outside quotes.
    Pass 2 re-runs the machine on each logical line and splits on the field
    delimiter instead.

Malformed input is handled permissively: short rows are padded, long rows are
truncated, and an unterminated quote at end of input is flushed as-is. Each
repair is recorded on ParsedDocument.issues rather than raised.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

BOM = "\ufeff"
QUOTE = '"'


class SourceNotFound(FileNotFoundError):
    """Raised when a source file does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Source file not found: {path}")
        self.path = path


@dataclass
class ParsedDocument:
    """
    Parsed tab-delimited document.

    Properties:
        header: Column names in file order
        rows: Data rows, each exactly len(header) strings
        issues: Repairs made while parsing (padding, truncation, open quotes)
    """
    header: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)

    def records(self) -> Iterator[Dict[str, str]]:
        """Yield each row as a {column: value} dict."""
        for row in self.rows:
            yield dict(zip(self.header, row))

    def column(self, name: str) -> List[str]:
        """All values of one column; KeyError if the header lacks it."""
        try:
            index = self.header.index(name)
        except ValueError:
            raise KeyError(name)
        return [row[index] for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)


def _scan(text: str, delimiter: str, split_lines: bool) -> Tuple[List[str], bool]:
    """
    Run the quote-tracking state machine over text.

    A quote opens a quoted section only at the start of a field. Inside a
    quoted section, a quote followed by another quote is an escaped literal;
    any other quote closes the section. Quote characters are kept in the
    output so the second pass can run the same machine again.

    Args:
        text: Input to scan
        delimiter: Field delimiter
        split_lines: True for pass 1 (break on CR/LF), False for pass 2
            (break on the delimiter)

    Returns:
        (chunks, unterminated) where unterminated is True if the text ended
        inside an open quote
    """
    chunks: List[str] = []
    buf: List[str] = []
    in_quote = False
    field_start = True
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if in_quote:
            buf.append(ch)
            if ch == QUOTE:
                if i + 1 < n and text[i + 1] == QUOTE:
                    buf.append(QUOTE)
                    i += 1
                else:
                    in_quote = False
            i += 1
            continue

        if ch == QUOTE and field_start:
            in_quote = True
            field_start = False
            buf.append(ch)
        elif split_lines and ch in "\r\n":
            chunks.append("".join(buf))
            buf = []
            field_start = True
            if ch == "\r" and i + 1 < n and text[i + 1] == "\n":
                i += 1
        elif ch == delimiter:
            if split_lines:
                buf.append(ch)
            else:
                chunks.append("".join(buf))
                buf = []
            field_start = True
        else:
            buf.append(ch)
            if ch != " ":
                field_start = False
        i += 1

    chunks.append("".join(buf))
    return chunks, in_quote


def _is_blank(line: str, delimiter: str) -> bool:
    # A line of bare delimiters is a record of empty fields, not a blank line.
    return not line.strip() and delimiter not in line


def split_logical_lines(text: str, delimiter: str = "\t") -> List[str]:
    """
    Pass 1: split a document into logical lines.

    CR, LF and CRLF end a line only outside a quoted field. Wholly blank
    lines are dropped.
    """
    lines, _ = _scan(text, delimiter, split_lines=True)
    return [line for line in lines if not _is_blank(line, delimiter)]


def split_fields(line: str, delimiter: str = "\t") -> List[str]:
    """Pass 2: split one logical line into raw (still quoted) fields."""
    fields, _ = _scan(line, delimiter, split_lines=False)
    return fields


def _clean_header_field(raw: str) -> str:
    value = raw.replace(BOM, "").strip()
    while len(value) >= 2 and value.startswith(QUOTE) and value.endswith(QUOTE):
        value = value[1:-1].strip()
    return value


def _closing_quote(value: str) -> int:
    """Index of the quote closing value's opening quote, or -1 if it never closes."""
    i = 1
    while i < len(value):
        if value[i] == QUOTE:
            if i + 1 < len(value) and value[i + 1] == QUOTE:
                i += 2
                continue
            return i
        i += 1
    return -1


def _clean_data_field(raw: str) -> Tuple[str, bool]:
    """
    Trim and unwrap one data field.

    Returns:
        (value, trailing) where trailing is True if text followed the closing
        quote; such a field is returned trimmed but otherwise untouched
    """
    value = raw.strip()
    if not value.startswith(QUOTE):
        return value, False

    close = _closing_quote(value)
    if close == -1:
        # Quote never closed: keep what was accumulated.
        return value[1:].replace('""', QUOTE), False
    if close != len(value) - 1:
        return value, True
    return value[1:-1].replace('""', QUOTE), False


def parse_tsv_string(text: str, delimiter: str = "\t") -> ParsedDocument:
    """
    Parse tab-delimited content into a ParsedDocument.

    Args:
        text: Document content
        delimiter: Field delimiter ("\\t" by default, "," for CSV sources)

    Returns:
        ParsedDocument whose every row has exactly len(header) fields.
        A document with no non-blank lines yields an empty header and no rows.
    """
    doc = ParsedDocument()
    if not text:
        return doc
    if text.startswith(BOM):
        text = text[1:]

    lines, unterminated = _scan(text, delimiter, split_lines=True)
    lines = [line for line in lines if not _is_blank(line, delimiter)]
    if not lines:
        return doc

    if unterminated:
        doc.issues.append("Document ends inside an open quoted field")

    doc.header = [_clean_header_field(f) for f in split_fields(lines[0], delimiter)]
    width = len(doc.header)

    for row_num, line in enumerate(lines[1:], start=2):
        values = []
        for raw in split_fields(line, delimiter):
            value, trailing = _clean_data_field(raw)
            if trailing:
                doc.issues.append(f"Row {row_num}: text after closing quote, field kept as-is")
            values.append(value)

        if len(values) < width:
            doc.issues.append(f"Row {row_num}: padded {width - len(values)} missing field(s)")
            values.extend([""] * (width - len(values)))
        elif len(values) > width:
            doc.issues.append(f"Row {row_num}: dropped {len(values) - width} extra field(s)")
            values = values[:width]
        doc.rows.append(values)

    return doc


def parse_tsv_file(filepath: str, delimiter: str = "\t", encoding: str = "utf-8") -> ParsedDocument:
    """
    Parse a tab-delimited file into a ParsedDocument.

    Args:
        filepath: Path to the source file
        delimiter: Field delimiter
        encoding: Text encoding (a BOM is stripped either way)

    Returns:
        ParsedDocument

    Raises:
        SourceNotFound: If the file doesn't exist
    """
    try:
        # newline="" keeps CR characters so quoted fields round-trip intact.
        with open(filepath, "r", encoding=encoding, newline="") as f:
            content = f.read()
    except FileNotFoundError as e:
        raise SourceNotFound(filepath) from e

    return parse_tsv_string(content, delimiter=delimiter)


def parse_tsv_records(filepath: str, delimiter: str = "\t") -> List[Dict[str, str]]:
    """Parse a file straight to a list of {column: value} dicts."""
    return list(parse_tsv_file(filepath, delimiter=delimiter).records())


__all__ = [
    "ParsedDocument",
    "SourceNotFound",
    "parse_tsv_string",
    "parse_tsv_file",
    "parse_tsv_records",
    "split_logical_lines",
    "split_fields",
]
