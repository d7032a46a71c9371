#!/usr/bin/env python3
"""
libclang adapters for the declaration and type ports.

Wraps `clang.cindex` cursors and types so the emitters and the type graph
builder never touch libclang directly.
"""

import threading
from collections.abc import Iterator
from pathlib import Path

import clang.cindex as clang

from declfacts.typegraph import AliasOf, ElementType, Other, Pointee, Record, Step

ARRAY_KINDS = {
    clang.TypeKind.CONSTANTARRAY,  # type: ignore
    clang.TypeKind.INCOMPLETEARRAY,  # type: ignore
    clang.TypeKind.VARIABLEARRAY,  # type: ignore
    clang.TypeKind.DEPENDENTSIZEDARRAY,  # type: ignore
}

TAG_KEYWORDS = {
    clang.CursorKind.STRUCT_DECL: "struct ",  # type: ignore
    clang.CursorKind.UNION_DECL: "union ",  # type: ignore
    clang.CursorKind.ENUM_DECL: "enum ",  # type: ignore
}

# Needed for MACRO_INSTANTIATION cursors, see SourceReader.
PARSE_OPTIONS = clang.TranslationUnit.PARSE_DETAILED_PROCESSING_RECORD


def sign_extend(value: int, bits: int) -> int:
    """Interpret the low `bits` bits of `value` as a two's complement integer."""
    if bits <= 0:
        return value
    mask = (1 << bits) - 1
    value &= mask
    if value >> (bits - 1):
        value -= 1 << bits
    return value


def is_unnamed(spelling: str) -> bool:
    # libclang spells anonymous tags as e.g. "struct (unnamed at foo.h:3:9)"
    return not spelling or "(unnamed" in spelling or "(anonymous" in spelling


def canonical_location(location: clang.SourceLocation) -> str:
    """`<absolute path>:<line>`, or a printable stand-in when there is no file."""
    # The Python bindings only expose expansion locations, so a declaration
    # produced by a macro is placed at the macro's invocation.
    if location.file is not None:
        path = Path(location.file.name)
        where = str(path.resolve()) if path.exists() else location.file.name
    else:
        where = "<invalid loc>"
    return f"{where}:{location.line}"


class SourceReader:
    """File contents and macro expansion ranges, cached for one extraction run.

    Expansion ranges come from the translation unit's MACRO_INSTANTIATION
    cursors, which libclang only reports for units parsed with
    `PARSE_OPTIONS`.
    """

    def __init__(self):
        self._files: dict[str, bytes | None] = {}
        self._expansions: dict[str, set[tuple[int, int]]] = {}
        self._scanned: set[str] = set()
        self._lock = threading.Lock()

    def read(self, path: str) -> bytes | None:
        with self._lock:
            if path not in self._files:
                try:
                    self._files[path] = Path(path).read_bytes()
                except OSError:
                    self._files[path] = None
            return self._files[path]

    def _scan(self, tu: clang.TranslationUnit) -> None:
        with self._lock:
            if tu.spelling in self._scanned:
                return
            self._scanned.add(tu.spelling)
            for cursor in tu.cursor.get_children():
                if cursor.kind != clang.CursorKind.MACRO_INSTANTIATION:  # type: ignore
                    continue
                start, end = cursor.extent.start, cursor.extent.end
                if start.file is None:
                    continue
                self._expansions.setdefault(start.file.name, set()).add((start.offset, end.offset))

    def in_macro_expansion(self, cursor: clang.Cursor) -> bool:
        """True when the cursor's extent starts inside a macro invocation."""
        self._scan(cursor.translation_unit)
        start = cursor.extent.start
        if start.file is None:
            return False
        ranges = self._expansions.get(start.file.name, ())
        return any(begin <= start.offset < end for begin, end in ranges)


class ClangDeclaration:
    """Any named declaration cursor."""

    def __init__(self, cursor: clang.Cursor, reader: SourceReader | None = None):
        self.cursor = cursor
        self.reader = reader or SourceReader()

    def _tag_typedef_name(self) -> str | None:
        """For `typedef struct {...} Name`, the typedef name clang spells the tag with.

        Named C tags always spell their type with the tag keyword; None means
        the cursor is not a tag or is not named this way.
        """
        keyword = TAG_KEYWORDS.get(self.cursor.kind)
        if keyword is None:
            return None
        spelling = self.cursor.type.spelling.strip()
        if spelling.startswith(keyword) or not spelling.isidentifier():
            return None
        # C++ drops the keyword for named tags too; those spell their name before the body.
        for token in self.cursor.get_tokens():
            if token.spelling == "{":
                break
            if token.spelling == self.cursor.spelling:
                return None
        return spelling

    @property
    def name(self) -> str:
        spelling = self.cursor.spelling
        if is_unnamed(spelling) or self._tag_typedef_name() is not None:
            return ""
        return spelling

    @property
    def anon_alias(self) -> str:
        """Typedef name clang attaches to an anonymous tag, if any."""
        return self._tag_typedef_name() or ""

    def location(self) -> str:
        return canonical_location(self.cursor.extent.start)

    def source_text(self) -> str:
        """Verbatim text covered by the cursor's extent, or "" if it can't be recovered."""
        start, end = self.cursor.extent.start, self.cursor.extent.end
        if start.file is None or end.file is None or start.file.name != end.file.name:
            return ""
        if end.offset <= start.offset:
            return ""
        if self.reader.in_macro_expansion(self.cursor):
            return ""
        data = self.reader.read(start.file.name)
        if data is None or end.offset > len(data):
            return ""
        return data[start.offset : end.offset].decode("utf-8", errors="replace")

    def __eq__(self, other):
        return isinstance(other, ClangDeclaration) and self.cursor == other.cursor

    def __hash__(self):
        return self.cursor.hash

    def __repr__(self):
        return f"{type(self).__name__}({self.cursor.spelling!r})"


class ClangEnum(ClangDeclaration):
    def enumerators(self) -> Iterator[tuple[str, int]]:
        bits = self.cursor.enum_type.get_size() * 8
        for child in self.cursor.get_children():
            if child.kind == clang.CursorKind.ENUM_CONSTANT_DECL:  # type: ignore
                yield child.spelling, sign_extend(child.enum_value, bits)


class ClangRecord(ClangDeclaration):
    """A struct or union declaration."""

    def definition(self) -> "ClangRecord | None":
        definition = self.cursor.get_definition()
        if definition is None:
            return None
        return ClangRecord(definition, self.reader)

    def field_types(self) -> Iterator[clang.Type]:
        for child in self.cursor.get_children():
            if child.kind == clang.CursorKind.FIELD_DECL:  # type: ignore
                yield child.type


class ClangTypeResolver:
    """Peels one layer off a `clang.cindex.Type`."""

    def resolve(self, declared_type: clang.Type) -> Step:
        t = declared_type
        while t.kind == clang.TypeKind.ELABORATED:  # type: ignore
            t = t.get_named_type()

        if t.kind == clang.TypeKind.TYPEDEF:  # type: ignore
            typedef = t.get_declaration()
            return AliasOf(typedef.spelling, typedef.underlying_typedef_type)

        # Try the sugared type first so pointees keep their typedef names,
        # then the canonical form (attributed, typeof, qualified, ...).
        for candidate in (t, t.get_canonical()):
            if candidate.kind == clang.TypeKind.POINTER:  # type: ignore
                return Pointee(candidate.get_pointee())
            if candidate.kind in ARRAY_KINDS:
                return ElementType(candidate.get_array_element_type())
            if candidate.kind == clang.TypeKind.RECORD:  # type: ignore
                return Record(ClangRecord(candidate.get_declaration()))
        return Other()
