"""
Tab-delimited record file writer.

Serializes entity and relationship tables to the pipeline's output format:
one header line, then one tab-joined line per record, joined with "\\n".

Escaping policy:
    Values are never quoted. Tabs and line feeds become a single space and
    carriage returns are dropped, so downstream readers that know nothing
    about quoting can split on tabs directly. This is lossy by intent: a value
    containing a tab does not survive a write/parse round trip unchanged.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from tabgraph.model import (
    CODE_RELATIONSHIP_COLUMNS,
    RELATIONSHIP_COLUMNS,
    STANDARD_COLUMNS,
)


@dataclass
class WriteResult:
    """Outcome of one write: how many records, and whether it was skipped."""
    path: str
    records_written: int = 0
    skipped: bool = False


def escape_for_tsv(value: Any) -> str:
    """Make a value safe for a quote-free tab-delimited line."""
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return value.replace("\t", " ").replace("\n", " ").replace("\r", "")


def _as_dict(record: Any) -> Mapping[str, Any]:
    if isinstance(record, Mapping):
        return record
    if hasattr(record, "to_dict"):
        return record.to_dict()
    raise TypeError(f"Unsupported record type: {type(record)}")


def render_tsv(records: Sequence[Any], columns: Optional[Sequence[str]] = None) -> str:
    """
    Render records as tab-delimited text.

    Args:
        records: Mappings, or model records with to_dict()
        columns: Column order; defaults to the first record's key order

    Returns:
        Header plus one line per record, no trailing newline.
        Keys missing from a record render as empty fields.
    """
    rows: List[Mapping[str, Any]] = [_as_dict(r) for r in records]
    if columns is None:
        columns = list(rows[0].keys()) if rows else []

    lines = ["\t".join(escape_for_tsv(c) for c in columns)]
    for row in rows:
        lines.append("\t".join(escape_for_tsv(row.get(c, "")) for c in columns))
    return "\n".join(lines)


def write_tsv(path: str, records: Iterable[Any], columns: Optional[Sequence[str]] = None) -> WriteResult:
    """
    Write records to a tab-delimited file, creating parent directories.

    An empty record collection is a normal skip: no file and no directory is
    created, and the result reports skipped=True.

    Args:
        path: Output file path
        records: Mappings, or model records with to_dict()
        columns: Column order; defaults to the first record's key order

    Returns:
        WriteResult
    """
    records = list(records)
    if not records:
        return WriteResult(path=path, records_written=0, skipped=True)

    text = render_tsv(records, columns)

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)

    return WriteResult(path=path, records_written=len(records))


def write_standard_tsv(path: str, records: Iterable[Any]) -> WriteResult:
    """Write entity records in the canonical ns/type/id/name/description/code order."""
    return write_tsv(path, records, list(STANDARD_COLUMNS))


def relationship_columns(records: Sequence[Any], extra_columns: Optional[Sequence[str]] = None) -> List[str]:
    """
    Canonical relationship column order for a batch of records.

    The code-keyed variant (fromCode/toCode) is used when the records are
    keyed by code. Extra columns follow relationshipType: the explicit list if
    given, else every non-canonical key in first-seen order.

    Raises:
        ValueError: If the batch mixes id-keyed and code-keyed records
    """
    if not records:
        return list(RELATIONSHIP_COLUMNS)

    rows = [_as_dict(r) for r in records]
    keyed_by_code = {"fromCode" in row or "toCode" in row for row in rows}
    if len(keyed_by_code) > 1:
        raise ValueError("Relationship batch mixes id-keyed and code-keyed records")
    if keyed_by_code.pop():
        columns = list(CODE_RELATIONSHIP_COLUMNS)
    else:
        columns = list(RELATIONSHIP_COLUMNS)

    if extra_columns is not None:
        return columns + [c for c in extra_columns if c not in columns]

    known = set(RELATIONSHIP_COLUMNS) | set(CODE_RELATIONSHIP_COLUMNS)
    extras: Dict[str, None] = {}
    for row in rows:
        for key in row:
            if key not in known:
                extras.setdefault(key, None)
    return columns + list(extras)


def write_relationship_tsv(
    path: str,
    records: Iterable[Any],
    extra_columns: Optional[Sequence[str]] = None,
) -> WriteResult:
    """Write relationship records in the canonical from/to/relationshipType order."""
    records = list(records)
    return write_tsv(path, records, relationship_columns(records, extra_columns))


__all__ = [
    "WriteResult",
    "escape_for_tsv",
    "render_tsv",
    "write_tsv",
    "write_standard_tsv",
    "relationship_columns",
    "write_relationship_tsv",
]
