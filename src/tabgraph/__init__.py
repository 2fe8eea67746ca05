"""
Tabular Graph Interchange (tabgraph) Package

The shared data-interchange layer behind the reference-data graph pipeline.

Every domain transform turns a raw source file into the same two shapes:
    - entity rows     (ns, type, id, name, description, code)
    - relationship rows (fromNs, fromType, fromId, toNs, toType, toId, relationshipType)

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Where a source file came from
    - How a particular dataset maps its columns
    - Command-line drivers or job scheduling

This package defines the FILE FORMAT, IDENTIFIERS and CODE HIERARCHIES only.

Layers:
    tsv_parser          raw text -> header + rows
    normalizer          free text -> canonical identifier
    hierarchy           code string -> level + parent
    mapper              rows -> entity and relationship records
    backends.tsv_writer records -> tab-delimited text
    validator           written files -> report
"""

__version__ = "0.1.0"
