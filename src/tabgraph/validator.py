"""
Record File Validator — checks written entity/relationship files.

This module inspects the tab-delimited files a pipeline run produced:
    - Header columns (canonical columns present, leading, in canonical order)
    - Required fields non-empty
    - Identifiers in canonical shape
    - Namespaces drawn from the configured set
    - Duplicate natural keys
    - Embedded tabs/newlines and repaired rows

IMPORTANT: This is read-only. It never modifies a file, and content problems
never raise: they are collected on a ValidationReport. Errors are format
violations downstream readers would trip over; warnings are quality flags.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from tabgraph.config import default_config
from tabgraph.model import (
    CODE_RELATIONSHIP_COLUMNS,
    RELATIONSHIP_COLUMNS,
    STANDARD_COLUMNS,
)
from tabgraph.normalizer import is_identifier
from tabgraph.tsv_parser import ParsedDocument, parse_tsv_file


LFS_POINTER_PREFIX = "version https://git-lfs.github.com/spec/v1"
MAX_SAMPLES = 5


class RecordKind(Enum):
    ENTITY = "entity"
    RELATIONSHIP = "relationship"


@dataclass
class ValidationReport:
    """Validation result for one record file."""

    file_name: str
    kind: RecordKind
    total_rows: int = 0
    is_lfs_pointer: bool = False

    missing_columns: List[str] = field(default_factory=list)
    header_out_of_order: bool = False
    empty_fields: List[Tuple[int, str]] = field(default_factory=list)  # (row number, column)
    invalid_ids: List[str] = field(default_factory=list)
    unknown_namespaces: Set[str] = field(default_factory=set)
    duplicate_keys: Set[str] = field(default_factory=set)
    rows_with_control_chars: List[int] = field(default_factory=list)

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        if msg not in self.errors:
            self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        if msg not in self.warnings:
            self.warnings.append(msg)


def _sample(items: Iterable[object]) -> str:
    items = [str(i) for i in items]
    text = ", ".join(items[:MAX_SAMPLES])
    if len(items) > MAX_SAMPLES:
        text += "..."
    return text


def _index(header: List[str], *names: str) -> int:
    for name in names:
        if name in header:
            return header.index(name)
    return -1


def _cell(row: List[str], index: int) -> str:
    return row[index].strip() if 0 <= index < len(row) else ""


def _check_header(doc: ParsedDocument, report: ValidationReport) -> None:
    header = doc.header
    if report.kind == RecordKind.ENTITY:
        required = ["ns", "type", "name"]
        report.missing_columns = [c for c in required if c not in header]
        if "id" not in header and "code" not in header:
            report.missing_columns.append("id|code")
    else:
        required = ["fromNs", "fromType", "toNs", "toType"]
        report.missing_columns = [c for c in required if c not in header]
        if "fromId" not in header and "fromCode" not in header:
            report.missing_columns.append("fromId|fromCode")
        if "toId" not in header and "toCode" not in header:
            report.missing_columns.append("toId|toCode")

    if report.missing_columns:
        report.add_error(f"Missing columns: {', '.join(report.missing_columns)}")

    # Downstream readers split on tabs by position, so the canonical columns
    # the file carries must come first and in canonical order.
    expected = [c for c in _canonical_columns(report.kind, header) if c in header]
    if header[:len(expected)] != expected:
        report.header_out_of_order = True
        report.add_error(f"Header out of canonical order: expected {', '.join(expected)} first")


def _canonical_columns(kind: RecordKind, header: List[str]) -> Tuple[str, ...]:
    if kind == RecordKind.ENTITY:
        return STANDARD_COLUMNS
    if "fromCode" in header or "toCode" in header:
        return CODE_RELATIONSHIP_COLUMNS
    return RELATIONSHIP_COLUMNS


def _check_entity_rows(doc: ParsedDocument, report: ValidationReport, namespaces: Set[str]) -> None:
    header = doc.header
    ns_i = _index(header, "ns")
    type_i = _index(header, "type")
    key_i = _index(header, "id", "code")
    id_i = _index(header, "id")
    name_i = _index(header, "name")
    desc_i = _index(header, "description")
    code_i = _index(header, "code")

    seen: Set[str] = set()
    for row_num, row in enumerate(doc.rows, start=2):
        key = _cell(row, key_i)
        name = _cell(row, name_i)

        # Description-only rows ("unclassified", "varies") carry no identity.
        if desc_i >= 0 and _cell(row, desc_i) and not key and not name:
            continue

        if ns_i >= 0 and not _cell(row, ns_i):
            report.empty_fields.append((row_num, "ns"))
        if type_i >= 0 and not _cell(row, type_i):
            report.empty_fields.append((row_num, "type"))
        if key_i >= 0 and not key and name:
            report.empty_fields.append((row_num, "id/code"))
        if name_i >= 0 and not name and key:
            report.empty_fields.append((row_num, "name"))

        ns = _cell(row, ns_i)
        if ns and ns not in namespaces:
            report.unknown_namespaces.add(ns)

        ident = _cell(row, id_i)
        if ident and not is_identifier(ident) and ident not in report.invalid_ids:
            report.invalid_ids.append(ident)

        natural = "\t".join([ns, _cell(row, code_i) or ident])
        if natural.strip() and natural in seen:
            report.duplicate_keys.add(_cell(row, code_i) or ident)
        seen.add(natural)


def _check_relationship_rows(doc: ParsedDocument, report: ValidationReport, namespaces: Set[str]) -> None:
    header = doc.header
    columns = {
        "fromNs": _index(header, "fromNs"),
        "fromType": _index(header, "fromType"),
        "toNs": _index(header, "toNs"),
        "toType": _index(header, "toType"),
    }
    from_i = _index(header, "fromId", "fromCode")
    to_i = _index(header, "toId", "toCode")
    rel_i = _index(header, "relationshipType")

    seen: Set[Tuple[str, ...]] = set()
    for row_num, row in enumerate(doc.rows, start=2):
        for name, i in columns.items():
            if i >= 0 and not _cell(row, i):
                report.empty_fields.append((row_num, name))

        for name in ("fromNs", "toNs"):
            ns = _cell(row, columns[name])
            if ns and ns not in namespaces:
                report.unknown_namespaces.add(ns)

        edge = (
            _cell(row, columns["fromNs"]),
            _cell(row, from_i),
            _cell(row, columns["toNs"]),
            _cell(row, to_i),
            _cell(row, rel_i),
        )
        if edge in seen:
            report.duplicate_keys.add(f"{edge[1]} -> {edge[3]}")
        seen.add(edge)


def validate_document(
    doc: ParsedDocument,
    kind: RecordKind,
    namespaces: Optional[Iterable[str]] = None,
    file_name: str = "<document>",
) -> ValidationReport:
    """
    Validate a parsed record document.

    Args:
        doc: Parsed entity or relationship file
        kind: Which canonical shape the file should have
        namespaces: Accepted namespaces (defaults to the configured set)
        file_name: Name used in the report

    Returns:
        ValidationReport with errors and warnings
    """
    report = ValidationReport(file_name=file_name, kind=kind, total_rows=len(doc.rows))
    valid_ns = set(namespaces) if namespaces is not None else set(default_config().valid_namespaces())

    _check_header(doc, report)

    for issue in doc.issues:
        report.add_warning(f"Repaired while parsing: {issue}")

    for row_num, row in enumerate(doc.rows, start=2):
        if any(ch in value for value in row for ch in "\t\n\r"):
            report.rows_with_control_chars.append(row_num)

    if kind == RecordKind.ENTITY:
        _check_entity_rows(doc, report, valid_ns)
    else:
        _check_relationship_rows(doc, report, valid_ns)

    # Errors
    if report.empty_fields:
        sample = _sample(f"row {r}: {c}" for r, c in report.empty_fields)
        report.add_error(f"Empty required fields: {sample}")

    if report.rows_with_control_chars:
        report.add_error(f"Rows with embedded tabs/newlines: {_sample(report.rows_with_control_chars)}")

    # Warnings
    if report.invalid_ids:
        report.add_warning(f"Non-standard IDs: {_sample(report.invalid_ids)}")

    if report.unknown_namespaces:
        report.add_warning(f"Unknown namespaces: {', '.join(sorted(report.unknown_namespaces))}")

    if report.duplicate_keys:
        report.add_warning(f"Duplicate keys: {_sample(sorted(report.duplicate_keys))}")

    return report


def validate_file(
    path: str,
    kind: RecordKind,
    namespaces: Optional[Iterable[str]] = None,
) -> ValidationReport:
    """
    Validate one record file on disk.

    Raises:
        SourceNotFound: If the file doesn't exist
    """
    file_name = os.path.basename(path)
    doc = parse_tsv_file(path)

    if doc.header and doc.header[0].startswith(LFS_POINTER_PREFIX):
        report = ValidationReport(file_name=file_name, kind=kind, is_lfs_pointer=True)
        report.add_warning(f"{file_name} is an LFS pointer; run 'git lfs pull' first")
        return report

    return validate_document(doc, kind, namespaces=namespaces, file_name=file_name)


def validate_records(
    source: Union[str, ParsedDocument],
    kind: RecordKind,
    namespaces: Optional[Iterable[str]] = None,
) -> ValidationReport:
    """Validate either a record file path or an already parsed document."""
    if isinstance(source, ParsedDocument):
        return validate_document(source, kind, namespaces=namespaces)
    return validate_file(source, kind, namespaces=namespaces)


def _tsv_files(directory: str) -> List[str]:
    if not os.path.isdir(directory):
        return []
    return sorted(
        os.path.join(directory, f)
        for f in os.listdir(directory)
        if f.endswith(".tsv") and not f.startswith(".")
    )


def validate_directory(
    data_dir: str,
    namespaces: Optional[Iterable[str]] = None,
) -> Dict[str, ValidationReport]:
    """
    Validate every entity file in data_dir and every relationship file in
    data_dir/relationships.

    Returns:
        Reports keyed by path relative to data_dir
    """
    namespaces = list(namespaces) if namespaces is not None else None
    reports: Dict[str, ValidationReport] = {}

    for path in _tsv_files(data_dir):
        reports[os.path.relpath(path, data_dir)] = validate_file(path, RecordKind.ENTITY, namespaces)

    for path in _tsv_files(os.path.join(data_dir, "relationships")):
        reports[os.path.relpath(path, data_dir)] = validate_file(path, RecordKind.RELATIONSHIP, namespaces)

    return reports


__all__ = [
    "RecordKind",
    "ValidationReport",
    "validate_document",
    "validate_file",
    "validate_records",
    "validate_directory",
]
