"""Backends for tabgraph output generation (tab-delimited record files)."""

from .tsv_writer import (
    WriteResult,
    escape_for_tsv,
    render_tsv,
    write_tsv,
    write_standard_tsv,
    write_relationship_tsv,
)

__all__ = [
    "WriteResult",
    "escape_for_tsv",
    "render_tsv",
    "write_tsv",
    "write_standard_tsv",
    "write_relationship_tsv",
]
