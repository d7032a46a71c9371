#!/usr/bin/env python3
"""
Record-to-record reachability over declared field types.

A field's declared type is peeled one layer at a time (pointer, array, alias)
until it bottoms out at a record or some other terminal type. Every named
record reached this way is collected, and its own fields are walked in turn.
The walk keeps a visited set of record definitions so it terminates on
self-referential and mutually recursive type graphs.
"""

import logging
from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class RecordHandle(Protocol):
    """A struct/union type as exposed by the front-end."""

    @property
    def name(self) -> str: ...

    @property
    def anon_alias(self) -> str: ...

    def definition(self) -> "RecordHandle | None": ...

    def field_types(self) -> Iterable[Any]: ...

    def __hash__(self) -> int: ...


@dataclass(frozen=True)
class Pointee:
    type: Any


@dataclass(frozen=True)
class ElementType:
    type: Any


@dataclass(frozen=True)
class AliasOf:
    alias_name: str
    underlying: Any


@dataclass(frozen=True)
class Record:
    record: RecordHandle


@dataclass(frozen=True)
class Other:
    pass


Step = Pointee | ElementType | AliasOf | Record | Other


class TypeResolver(Protocol):
    """Strips one layer off a declared type.

    Implementations canonicalize the input first, so qualifiers and
    elaborated (`struct Foo`) wrappers never show up as a step.
    """

    def resolve(self, declared_type: Any) -> Step: ...


def record_display_name(record: RecordHandle, alias_name: str = "") -> str:
    """Own name, else the alias it was reached through, else the anonymous alias."""
    return record.name or alias_name or record.anon_alias


def collect_nested_records(
    declared_type: Any,
    resolver: TypeResolver,
    nested: set[str],
    visited: set[Hashable],
    alias_name: str = "",
) -> None:
    """Add every record name reachable from `declared_type` to `nested`.

    `visited` holds record definitions that have already been expanded; a
    definition is expanded at most once for the lifetime of the set.
    """
    step = resolver.resolve(declared_type)

    # An alias of a pointer or array does not name the record behind it.
    if isinstance(step, (Pointee, ElementType)):
        collect_nested_records(step.type, resolver, nested, visited)
        return

    if isinstance(step, AliasOf):
        collect_nested_records(
            step.underlying, resolver, nested, visited, step.alias_name or alias_name
        )
        return

    if isinstance(step, Record):
        record = step.record
        name = record_display_name(record, alias_name)
        if not name:
            logger.debug("Skipping unnamed record %r", record)
            return
        nested.add(name)

        definition = record.definition()
        if definition is None or definition in visited:
            return
        visited.add(definition)
        for field_type in definition.field_types():
            collect_nested_records(field_type, resolver, nested, visited)


def record_relations(
    record: RecordHandle, resolver: TypeResolver, name: str = ""
) -> list[str]:
    """Sorted names of the records transitively reachable from `record`'s fields.

    `name` is the display name the record is reported under; it is excluded
    from the result even when some field path leads back to it.
    """
    definition = record.definition() or record
    visited: set[Hashable] = {definition}
    nested: set[str] = set()

    for field_type in definition.field_types():
        collect_nested_records(field_type, resolver, nested, visited)

    nested.discard(name or record_display_name(record))
    return sorted(nested)
