"""
Canonical entity mapper (Layer 2: rows -> records).

Turns parsed rows of a classification source into the two canonical tables:

    entities       one StandardRecord per distinct code (or name)
    relationships  one code-keyed child_of edge from each code to its parent

Codes whose shape the scheme doesn't recognize still become entities (typed
with the scheme's unknown label) but get no hierarchy edge; each one is
reported with an UnknownLevelWarning.
"""
from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Set

from tabgraph.hierarchy import Scheme, is_known, level, parent
from tabgraph.model import (
    KeyedRecordSet,
    RelationshipRecord,
    StandardRecord,
    by_code,
    by_edge,
    by_name,
)
from tabgraph.normalizer import clean_description, normalize


CHILD_OF = "child_of"


class UnknownLevelWarning(UserWarning):
    """A code's shape matches no tier of its scheme."""
    pass


@dataclass
class MappedTables:
    """Entity and relationship tables produced from one source."""
    entities: KeyedRecordSet[StandardRecord]
    relationships: KeyedRecordSet[RelationshipRecord]


def _rows(rows: Any) -> Iterable[Mapping[str, str]]:
    # Accept a ParsedDocument directly.
    if hasattr(rows, "records"):
        return list(rows.records())
    return list(rows)


def _value(row: Mapping[str, str], column: Optional[str]) -> str:
    if not column:
        return ""
    return (row.get(column) or "").strip()


def _entity_key(record: StandardRecord) -> str:
    return by_code(record) or by_name(record)


def map_entities(
    rows: Any,
    ns: str,
    scheme: Optional[Scheme] = None,
    type_name: Optional[str] = None,
    code_column: str = "code",
    name_column: str = "name",
    description_column: Optional[str] = None,
    normalizer: Optional[Callable[[str], str]] = None,
) -> KeyedRecordSet[StandardRecord]:
    """
    Map rows to StandardRecords, deduplicated by code (or name when code-less).

    Args:
        rows: ParsedDocument or iterable of {column: value} dicts
        ns: Namespace for every record
        scheme: Derive each record's type from its code's level
        type_name: Fixed type for every record (used when scheme is None)
        code_column, name_column, description_column: Source columns
        normalizer: Identifier function (defaults to normalize())

    Returns:
        KeyedRecordSet of StandardRecord in source order

    Raises:
        ValueError: If neither scheme nor type_name is given
    """
    if scheme is None and type_name is None:
        raise ValueError("map_entities needs a scheme or a type_name")
    to_id = normalizer or normalize

    entities: KeyedRecordSet[StandardRecord] = KeyedRecordSet(_entity_key)
    for row in _rows(rows):
        code = _value(row, code_column)
        name = _value(row, name_column)
        if not code and not name:
            continue
        record_type = level(code, scheme) if scheme is not None else type_name
        entities.add(StandardRecord(
            ns=ns,
            type=record_type,
            id=to_id(name),
            name=name,
            description=clean_description(_value(row, description_column)),
            code=code,
        ))
    return entities


def map_hierarchy(
    rows: Any,
    ns: str,
    scheme: Scheme,
    code_column: str = "code",
    relationship_type: str = CHILD_OF,
    require_parent: bool = True,
) -> KeyedRecordSet[RelationshipRecord]:
    """
    Derive code-keyed hierarchy edges (child -> parent) for every row's code.

    Args:
        rows: ParsedDocument or iterable of {column: value} dicts
        ns: Namespace for both endpoints
        scheme: Classification scheme deriving levels and parents
        code_column: Column holding the code
        relationship_type: Edge label
        require_parent: Only emit an edge when the parent code is itself
            present in the rows

    Returns:
        KeyedRecordSet of RelationshipRecord, deduplicated by edge
    """
    codes = [_value(row, code_column) for row in _rows(rows)]
    present: Set[str] = {c for c in codes if c}

    edges: KeyedRecordSet[RelationshipRecord] = KeyedRecordSet(by_edge)
    for code in codes:
        if not code:
            continue
        if not is_known(code, scheme):
            warnings.warn(
                f"Unrecognized {scheme.name} code shape: {code!r}",
                UnknownLevelWarning,
            )
            continue
        parent_code = parent(code, scheme)
        if parent_code is None:
            continue
        if require_parent and parent_code not in present:
            continue
        edges.add(RelationshipRecord(
            from_ns=ns,
            from_type=level(code, scheme),
            from_code=code,
            to_ns=ns,
            to_type=level(parent_code, scheme),
            to_code=parent_code,
            relationship_type=relationship_type,
        ))
    return edges


def map_rows(
    rows: Any,
    ns: str,
    scheme: Scheme,
    code_column: str = "code",
    name_column: str = "name",
    description_column: Optional[str] = None,
    normalizer: Optional[Callable[[str], str]] = None,
    relationship_type: str = CHILD_OF,
    require_parent: bool = True,
) -> MappedTables:
    """Map rows to both canonical tables in one call."""
    rows = _rows(rows)
    entities = map_entities(
        rows,
        ns,
        scheme=scheme,
        code_column=code_column,
        name_column=name_column,
        description_column=description_column,
        normalizer=normalizer,
    )
    relationships = map_hierarchy(
        rows,
        ns,
        scheme,
        code_column=code_column,
        relationship_type=relationship_type,
        require_parent=require_parent,
    )
    return MappedTables(entities=entities, relationships=relationships)


__all__ = [
    "CHILD_OF",
    "UnknownLevelWarning",
    "MappedTables",
    "map_entities",
    "map_hierarchy",
    "map_rows",
]
