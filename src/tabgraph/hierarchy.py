"""
Hierarchical code derivation.

Classification schemes (industry, occupation, tariff, process frameworks)
encode their hierarchy positionally: a code's level and its parent can be read
off the code string itself. Every scheme here is one record in a table, and a
single generic engine answers level/parent questions for all of them.

Truncation rules:
    LENGTH    level keyed by code length; the parent is the code truncated to
              the previous tier's width
                  NAICS  311812 -> 31181 -> 3118 -> 311 -> 31
                  HTS    0101210010 -> 01012100 -> 010121 -> 0101 -> 01

    ZERO_RUN  level keyed by the trailing run of zeros; the parent zeroes the
              digits of the next tier up
                  SOC    15-1252 -> 15-1200 -> 15-1000 -> 15-0000

    SEGMENT   level keyed by the number of separator-delimited segments; the
              parent drops the last segment
                  APQC   1.2.3.4 -> 1.2.3 -> 1.2 -> 1

Shapes that match no tier are never an error: they get the scheme's unknown
label and no parent.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from tabgraph.model import CodeHierarchyNode


class TruncationRule(Enum):
    """How a scheme measures a code and derives its parent."""
    LENGTH = "length"
    ZERO_RUN = "zero_run"
    SEGMENT = "segment"


@dataclass(frozen=True)
class Tier:
    """One level of a scheme: the measured key and its label."""
    key: int
    label: str


@dataclass(frozen=True)
class Scheme:
    """
    Table entry describing one classification scheme.

    Properties:
        name:
            Scheme identifier (e.g. "naics")

        rule:
            TruncationRule used to measure codes and derive parents

        tiers:
            Levels ordered root first. The first tier is the floor: codes at
            that tier have no parent.

        pattern:
            Optional regular expression a code must fully match; anything
            else is an unknown shape

        strip_suffix:
            Optional separator; everything from its first occurrence on is
            dropped before measuring (e.g. "." turns O*NET "15-1252.01" into
            SOC "15-1252")

        separator:
            Segment separator for the SEGMENT rule

        clamp_deepest:
            SEGMENT rule only: codes deeper than the last tier take the last
            tier's label instead of the unknown label

        unknown_label:
            Level label for unrecognized shapes
    """

    name: str
    rule: TruncationRule
    tiers: Tuple[Tier, ...]
    pattern: Optional[str] = None
    strip_suffix: Optional[str] = None
    separator: str = "."
    clamp_deepest: bool = False
    unknown_label: str = "Unknown"

    @property
    def floor(self) -> Tier:
        return self.tiers[0]

    def labels(self) -> List[str]:
        return [tier.label for tier in self.tiers]


def _base_code(code: Optional[str], scheme: Scheme) -> Optional[str]:
    if not code:
        return None
    base = code.strip()
    if scheme.strip_suffix and scheme.strip_suffix in base:
        base = base.split(scheme.strip_suffix, 1)[0]
    if not base:
        return None
    if scheme.pattern is not None and not re.fullmatch(scheme.pattern, base):
        return None
    return base


def _trailing_zeros(code: str) -> int:
    return len(code) - len(code.rstrip("0"))


def _tier_index(base: str, scheme: Scheme) -> Optional[int]:
    """Index into scheme.tiers for a validated base code, or None."""
    if scheme.rule == TruncationRule.LENGTH:
        measure = len(base)
        for i, tier in enumerate(scheme.tiers):
            if tier.key == measure:
                return i
        return None

    if scheme.rule == TruncationRule.ZERO_RUN:
        run = _trailing_zeros(base)
        # Root first means descending minimum runs: take the first one met.
        for i, tier in enumerate(scheme.tiers):
            if run >= tier.key:
                return i
        return None

    if scheme.rule == TruncationRule.SEGMENT:
        parts = base.split(scheme.separator)
        if any(not p for p in parts):
            return None
        count = len(parts)
        for i, tier in enumerate(scheme.tiers):
            if tier.key == count:
                return i
        if scheme.clamp_deepest and count > scheme.tiers[-1].key:
            return len(scheme.tiers) - 1
        return None

    raise ValueError(f"Unsupported truncation rule: {scheme.rule}")


def _parent_of(base: str, index: int, scheme: Scheme) -> Optional[str]:
    if index == 0:
        return None
    parent_tier = scheme.tiers[index - 1]

    if scheme.rule == TruncationRule.LENGTH:
        return base[:parent_tier.key]

    if scheme.rule == TruncationRule.ZERO_RUN:
        width = parent_tier.key
        return base[:len(base) - width] + "0" * width

    parts = base.split(scheme.separator)
    return scheme.separator.join(parts[:-1])


def level(code: Optional[str], scheme: Scheme) -> str:
    """Level label for a code, or scheme.unknown_label for unrecognized shapes."""
    base = _base_code(code, scheme)
    if base is None:
        return scheme.unknown_label
    index = _tier_index(base, scheme)
    if index is None:
        return scheme.unknown_label
    return scheme.tiers[index].label


def parent(code: Optional[str], scheme: Scheme) -> Optional[str]:
    """Parent code, or None at the floor tier and for unrecognized shapes."""
    base = _base_code(code, scheme)
    if base is None:
        return None
    index = _tier_index(base, scheme)
    if index is None:
        return None
    return _parent_of(base, index, scheme)


def is_known(code: Optional[str], scheme: Scheme) -> bool:
    """True when the code's shape matches one of the scheme's tiers."""
    base = _base_code(code, scheme)
    return base is not None and _tier_index(base, scheme) is not None


def node(code: str, scheme: Scheme) -> CodeHierarchyNode:
    """Derive the full hierarchy node for a code."""
    return CodeHierarchyNode(code=code, level=level(code, scheme), parent_code=parent(code, scheme))


def ancestors(code: str, scheme: Scheme) -> List[str]:
    """Parent chain from the immediate parent up to the floor."""
    chain: List[str] = []
    current = parent(code, scheme)
    while current is not None and current not in chain:
        chain.append(current)
        current = parent(current, scheme)
    return chain


# =========================================================================
# BUILT-IN SCHEMES
# =========================================================================

def naics_scheme() -> Scheme:
    return Scheme(
        name="naics",
        rule=TruncationRule.LENGTH,
        tiers=(
            Tier(2, "Sector"),
            Tier(3, "Subsector"),
            Tier(4, "IndustryGroup"),
            Tier(5, "NAICSIndustry"),
            Tier(6, "NationalIndustry"),
        ),
        pattern=r"\d+",
    )


def soc_scheme() -> Scheme:
    return Scheme(
        name="soc",
        rule=TruncationRule.ZERO_RUN,
        tiers=(
            Tier(4, "MajorGroup"),
            Tier(3, "MinorGroup"),
            Tier(2, "BroadGroup"),
            Tier(0, "DetailedOccupation"),
        ),
        pattern=r"\d{2}-\d{4}",
        strip_suffix=".",
    )


def hts_scheme() -> Scheme:
    return Scheme(
        name="hts",
        rule=TruncationRule.LENGTH,
        tiers=(
            Tier(2, "Chapter"),
            Tier(4, "Heading"),
            Tier(6, "Subheading"),
            Tier(8, "Code"),
            Tier(10, "Code"),
        ),
        pattern=r"\d+",
    )


def apqc_scheme() -> Scheme:
    return Scheme(
        name="apqc",
        rule=TruncationRule.SEGMENT,
        tiers=(
            Tier(1, "Category"),
            Tier(2, "ProcessGroup"),
            Tier(3, "Process"),
            Tier(4, "Activity"),
            Tier(5, "Task"),
        ),
        pattern=r"\d+(\.\d+)*",
        separator=".",
        clamp_deepest=True,
    )


def default_schemes() -> Dict[str, Scheme]:
    """Fresh table of the built-in schemes, keyed by name."""
    schemes = [naics_scheme(), soc_scheme(), hts_scheme(), apqc_scheme()]
    return {s.name: s for s in schemes}


__all__ = [
    "TruncationRule",
    "Tier",
    "Scheme",
    "level",
    "parent",
    "is_known",
    "node",
    "ancestors",
    "naics_scheme",
    "soc_scheme",
    "hts_scheme",
    "apqc_scheme",
    "default_schemes",
]
