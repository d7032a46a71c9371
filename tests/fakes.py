"""Synthetic declarations and types for exercising the core without libclang."""

from dataclasses import dataclass, field
from typing import Any

from declfacts.typegraph import AliasOf, ElementType, Other, Pointee, Record


@dataclass(frozen=True)
class Ptr:
    to: Any


@dataclass(frozen=True)
class Arr:
    of: Any
    size: int = 0


@dataclass(frozen=True)
class Alias:
    name: str
    to: Any


@dataclass(frozen=True)
class Const:
    of: Any


@dataclass(frozen=True)
class Scalar:
    name: str = "int"


@dataclass(eq=False)
class FakeRecord:
    """Record handle; identity is the object itself."""

    name: str = ""
    fields: list = field(default_factory=list)
    anon_alias: str = ""
    defined: bool = True
    loc: str = "/src/types.h:1"
    source: str = ""

    def definition(self):
        return self if self.defined else None

    def field_types(self):
        return list(self.fields)

    def location(self) -> str:
        return self.loc

    def source_text(self) -> str:
        return self.source

    def __repr__(self):
        return f"FakeRecord({self.name!r})"


@dataclass
class FakeDecl:
    name: str
    loc: str = "/src/api.h:1"
    source: str = ""

    def location(self) -> str:
        return self.loc

    def source_text(self) -> str:
        return self.source


@dataclass
class FakeEnum(FakeDecl):
    members: list[tuple[str, int]] = field(default_factory=list)

    def enumerators(self):
        return iter(self.members)


class FakeResolver:
    """Resolves the fake type constructors above; counts every call."""

    def __init__(self):
        self.calls: list[Any] = []

    def resolve(self, declared_type):
        self.calls.append(declared_type)
        t = declared_type
        while isinstance(t, Const):
            t = t.of
        if isinstance(t, Ptr):
            return Pointee(t.to)
        if isinstance(t, Arr):
            return ElementType(t.of)
        if isinstance(t, Alias):
            return AliasOf(t.name, t.to)
        if isinstance(t, FakeRecord):
            return Record(t)
        return Other()
