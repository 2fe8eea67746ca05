"""
Core Record Model Objects

Defines the fundamental data structures of the entity/relationship graph.

These are pure data classes representing:
    - StandardRecords (one classified entity)
    - RelationshipRecords (a directed, typed edge between two entities)
    - CodeHierarchyNodes (a code's position in its classification scheme)
    - KeyedRecordSets (insert-if-absent collections used for deduplication)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about any particular source dataset
        - Hold strings only (no type coercion)
        - Serialize to {column: value} dicts in the canonical column order
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Hashable,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
)


STANDARD_COLUMNS: Tuple[str, ...] = ("ns", "type", "id", "name", "description", "code")

RELATIONSHIP_COLUMNS: Tuple[str, ...] = (
    "fromNs", "fromType", "fromId", "toNs", "toType", "toId", "relationshipType",
)

CODE_RELATIONSHIP_COLUMNS: Tuple[str, ...] = (
    "fromNs", "fromType", "fromCode", "toNs", "toType", "toCode", "relationshipType",
)


@dataclass
class StandardRecord:
    """
    One classified entity.

    Properties:
        ns:
            Dotted authority domain that owns the entity's identity
            Example: "naics.org.ai"

        type:
            Entity type, usually the hierarchy level of its code
            Example: "Sector", "DetailedOccupation"

        id:
            Canonical identifier produced by the normalizer
            Example: "Crop_Production"

        name:
            Human-readable name as it appears in the source

        description:
            Cleaned description text (may be empty)

        code:
            Scheme-native code (may be empty for code-less vocabularies)
    """

    ns: str
    type: str
    id: str
    name: str
    description: str = ""
    code: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "ns": self.ns,
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "code": self.code,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, str]) -> "StandardRecord":
        return cls(
            ns=d.get("ns", ""),
            type=d.get("type", ""),
            id=d.get("id", ""),
            name=d.get("name", ""),
            description=d.get("description", ""),
            code=d.get("code", ""),
        )


@dataclass
class RelationshipRecord:
    """
    A directed, typed edge between two entities.

    Each endpoint is addressed either by canonical identifier (from_id/to_id)
    or by scheme-native code (from_code/to_code). When a code is given, the
    serialized row uses the fromCode/toCode column in place of fromId/toId.

    Properties:
        from_ns, from_type, from_id | from_code:
            Origin entity

        to_ns, to_type, to_id | to_code:
            Destination entity

        relationship_type:
            Edge label
            Example: "child_of"

        extras:
            Additional scalar columns appended after relationshipType
            Example: {"percentage": "42.5"}

    Example:
        NAICS 111 (Crop Production) is a child of sector 11 (Agriculture):

        RelationshipRecord(
            from_ns="naics.org.ai", from_type="Subsector", from_code="111",
            to_ns="naics.org.ai", to_type="Sector", to_code="11",
            relationship_type="child_of",
        )
    """

    from_ns: str
    from_type: str
    to_ns: str
    to_type: str
    relationship_type: str = ""
    from_id: Optional[str] = None
    to_id: Optional[str] = None
    from_code: Optional[str] = None
    to_code: Optional[str] = None
    extras: Dict[str, str] = field(default_factory=dict)

    @property
    def keyed_by_code(self) -> bool:
        """True when either endpoint is addressed by code."""
        return self.from_code is not None or self.to_code is not None

    @property
    def from_key(self) -> str:
        return self.from_code if self.from_code is not None else (self.from_id or "")

    @property
    def to_key(self) -> str:
        return self.to_code if self.to_code is not None else (self.to_id or "")

    def columns(self) -> List[str]:
        """Column order for this record, extras last."""
        base = CODE_RELATIONSHIP_COLUMNS if self.keyed_by_code else RELATIONSHIP_COLUMNS
        return list(base) + list(self.extras.keys())

    def to_dict(self) -> Dict[str, str]:
        d: Dict[str, str] = {"fromNs": self.from_ns, "fromType": self.from_type}
        if self.from_code is not None:
            d["fromCode"] = self.from_code
        else:
            d["fromId"] = self.from_id or ""
        d["toNs"] = self.to_ns
        d["toType"] = self.to_type
        if self.to_code is not None:
            d["toCode"] = self.to_code
        else:
            d["toId"] = self.to_id or ""
        d["relationshipType"] = self.relationship_type
        d.update(self.extras)
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, str]) -> "RelationshipRecord":
        known = set(RELATIONSHIP_COLUMNS) | set(CODE_RELATIONSHIP_COLUMNS)
        return cls(
            from_ns=d.get("fromNs", ""),
            from_type=d.get("fromType", ""),
            from_id=d.get("fromId"),
            from_code=d.get("fromCode"),
            to_ns=d.get("toNs", ""),
            to_type=d.get("toType", ""),
            to_id=d.get("toId"),
            to_code=d.get("toCode"),
            relationship_type=d.get("relationshipType", ""),
            extras={k: v for k, v in d.items() if k not in known},
        )


@dataclass(frozen=True)
class CodeHierarchyNode:
    """
    A code's position in its classification scheme.

    Derived purely from the code's textual shape; see tabgraph.hierarchy.

    Properties:
        code: The scheme-native code
        level: Level label (e.g. "Sector") or the scheme's unknown label
        parent_code: Code of the parent node, None at the root or for unknown shapes
    """

    code: str
    level: str
    parent_code: Optional[str] = None

    @property
    def is_root(self) -> bool:
        return self.parent_code is None


# =========================================================================
# DEDUPLICATION
# =========================================================================

R = TypeVar("R")


def _field(record: Any, name: str) -> str:
    if isinstance(record, Mapping):
        value = record.get(name)
    else:
        value = getattr(record, name, None)
    return "" if value is None else str(value)


def by_code(record: Any) -> str:
    """Natural key: the scheme-native code."""
    return _field(record, "code")


def by_name(record: Any) -> str:
    """Natural key: the source name."""
    return _field(record, "name")


def by_code_and_name(record: Any) -> Tuple[str, str]:
    """Natural key: code and name together."""
    return (_field(record, "code"), _field(record, "name"))


def by_edge(record: RelationshipRecord) -> Tuple[str, ...]:
    """Natural key for an edge: both endpoints plus the edge label."""
    return (
        record.from_ns,
        record.from_key,
        record.to_ns,
        record.to_key,
        record.relationship_type,
    )


class KeyedRecordSet(Generic[R]):
    """
    Insertion-ordered, insert-if-absent record collection.

    The first record added for a given natural key wins; later records with
    the same key are ignored. Iteration yields records in insertion order.

    Example:
        entities = KeyedRecordSet(by_code)
        entities.add(StandardRecord(ns, "Sector", "Agriculture", "Agriculture", code="11"))
        entities.add(StandardRecord(ns, "Sector", "Farming", "Farming", code="11"))  # ignored
        assert len(entities) == 1
    """

    def __init__(self, key: Callable[[R], Hashable], records: Optional[Iterable[R]] = None):
        self._key = key
        self._records: Dict[Hashable, R] = {}
        self.duplicates = 0
        if records is not None:
            self.extend(records)

    def add(self, record: R) -> bool:
        """
        Add a record unless its key is already present.

        Returns:
            True if the record was inserted, False if it was a duplicate
        """
        k = self._key(record)
        if k in self._records:
            self.duplicates += 1
            return False
        self._records[k] = record
        return True

    def extend(self, records: Iterable[R]) -> int:
        """Add every record; returns how many were inserted."""
        return sum(1 for record in records if self.add(record))

    def get(self, key: Hashable) -> Optional[R]:
        return self._records.get(key)

    def keys(self) -> List[Hashable]:
        return list(self._records.keys())

    def to_list(self) -> List[R]:
        return list(self._records.values())

    def __contains__(self, key: Hashable) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[R]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)
