#!/usr/bin/env python3
"""
Emitters that turn declarations into line-delimited JSON facts.

Every emitter follows the same sequence, all of it inside a single
`DedupIndex.transaction()`: derive the display name (skip if empty), derive
the canonical location, check the dedup key, then serialize and append one
line. Skips are silent; only I/O errors escape.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from declfacts.dedup import DedupIndex, dedup_key
from declfacts.records import DeclarationRecord, EnumValuesRecord, StructRelationsRecord
from declfacts.typegraph import RecordHandle, TypeResolver, record_relations

logger = logging.getLogger(__name__)


class Declaration(Protocol):
    """A named declaration with a source span."""

    @property
    def name(self) -> str: ...

    def location(self) -> str: ...

    def source_text(self) -> str: ...


class EnumDeclaration(Declaration, Protocol):
    def enumerators(self) -> Iterable[tuple[str, int]]: ...


class RecordDeclaration(Declaration, RecordHandle, Protocol):
    pass


class FactEmitter:
    """Writes declaration, enum-value and struct-relation facts exactly once."""

    def __init__(self, index: DedupIndex, resolver: TypeResolver):
        self.index = index
        self.resolver = resolver

    def emit_declaration(
        self,
        decl: Declaration,
        destination: str | Path,
        is_typedef: bool = False,
        alias_name: str = "",
    ) -> bool:
        with self.index.transaction() as txn:
            name = decl.name
            if not name:
                return False

            filename = decl.location()
            if not txn.check_and_insert(dedup_key(filename, name, destination, alias_name)):
                return False

            record = DeclarationRecord(
                name=name,
                source=decl.source_text(),
                filename=filename,
                alias=alias_name if is_typedef else None,
            )
            txn.append(destination, record.to_line())
            return True

    def emit_enum_values(self, decl: EnumDeclaration, destination: str | Path) -> bool:
        with self.index.transaction() as txn:
            enum_name = decl.name
            if not enum_name:
                return False

            filename = decl.location()
            if not txn.check_and_insert(dedup_key(filename, enum_name, destination)):
                return False

            values = {member: value for member, value in decl.enumerators()}
            txn.append(destination, EnumValuesRecord.build(enum_name, values).to_line())
            return True

    def emit_struct_relations(
        self, decl: RecordDeclaration, destination: str | Path, struct_name: str = ""
    ) -> bool:
        """Emit `{name: [related records]}`; `struct_name` names a record that has no name of its own."""
        with self.index.transaction() as txn:
            name = decl.name or struct_name or decl.anon_alias
            if not name:
                logger.debug("Skipping relations for unnamed record at %s", decl.location())
                return False

            filename = decl.location()
            if not txn.check_and_insert(dedup_key(filename, name, destination)):
                return False

            related = record_relations(decl, self.resolver, name)
            txn.append(destination, StructRelationsRecord.build(name, related).to_line())
            return True
