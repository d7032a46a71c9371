"""Declaration fact extraction for C sources."""

from declfacts.dedup import DedupIndex, dedup_key
from declfacts.emitters import FactEmitter
from declfacts.typegraph import (
    AliasOf,
    ElementType,
    Other,
    Pointee,
    Record,
    collect_nested_records,
    record_relations,
)

__all__ = [
    "AliasOf",
    "DedupIndex",
    "ElementType",
    "FactEmitter",
    "Other",
    "Pointee",
    "Record",
    "collect_nested_records",
    "dedup_key",
    "record_relations",
]
