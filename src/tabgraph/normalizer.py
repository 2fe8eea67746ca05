"""
Canonical identifier normalizer.

Turns free text (occupation titles, industry names, vocabulary labels) into
the underscore-joined identifier used as an entity's primary key:

    "Crop Production"              -> "Crop_Production"
    "IT Manager (Senior)"          -> "IT_Manager_(senior)"
    "Farm/Farm and Ranch Mgmt."    -> "Farm_Farm_And_Ranch_Mgmt"
    "10%"                          -> "10_Percent"

Symbol words come from an injected NormalizerConfig; the functions here keep
no state of their own.
"""
from __future__ import annotations

import re
from typing import Optional

from tabgraph.config import NormalizerConfig


# Runs of whitespace, hyphens, slashes and underscores collapse to one space.
# Underscore is included so that an already-normalized identifier survives a
# second pass unchanged.
_SEPARATOR_RE = re.compile(r"[\s\-/_]+")
_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9\s'()]")
_UNDERSCORES_RE = re.compile(r"_+")
_IDENTIFIER_RE = re.compile(r"^[A-Z0-9][A-Za-z0-9_'()]*$")
_WHITESPACE_RE = re.compile(r"\s+")

ACRONYM_MAX_LENGTH = 4


def _capitalize(word: str) -> str:
    # Short all-caps words are treated as acronyms and kept verbatim.
    if word == word.upper() and len(word) <= ACRONYM_MAX_LENGTH:
        return word
    return word[:1].upper() + word[1:].lower()


def normalize(text: Optional[str], config: Optional[NormalizerConfig] = None) -> str:
    """
    Convert text to a canonical identifier.

    Args:
        text: Free text; None and "" normalize to ""
        config: Symbol table to use (defaults to NormalizerConfig())

    Returns:
        Identifier containing no spaces, hyphens, slashes, tabs or newlines
    """
    if not text:
        return ""
    if config is None:
        config = NormalizerConfig()

    stripped = text.strip()
    if stripped in config.symbols:
        # The mapped word still goes through casing and separator rules.
        stripped = config.symbols[stripped]
    else:
        for symbol, word in config.symbols.items():
            stripped = stripped.replace(symbol, f" {word} ")

    stripped = _SEPARATOR_RE.sub(" ", stripped)
    stripped = _DISALLOWED_RE.sub("", stripped)

    words = [_capitalize(w) for w in stripped.split() if w]
    joined = _UNDERSCORES_RE.sub("_", "_".join(words))
    return joined.strip("_")


class Normalizer:
    """
    Normalizer bound to one configuration.

    Stateless apart from its (immutable) config, so a single instance can be
    shared freely between transforms.
    """

    def __init__(self, config: Optional[NormalizerConfig] = None):
        self.config = config if config is not None else NormalizerConfig()

    def __call__(self, text: Optional[str]) -> str:
        return normalize(text, self.config)


def is_identifier(value: str) -> bool:
    """Check that a value has the canonical identifier shape."""
    if not value or not _IDENTIFIER_RE.match(value):
        return False
    if value.endswith("_") or "__" in value:
        return False
    return True


def clean_description(text: Optional[str]) -> str:
    """Collapse every whitespace run (tabs and newlines included) to one space."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


__all__ = [
    "normalize",
    "Normalizer",
    "is_identifier",
    "clean_description",
    "ACRONYM_MAX_LENGTH",
]
