#!/usr/bin/env python3
"""
Walks libclang translation units and hands declarations to the emitters.

Each file is parsed with its own `clang.cindex.Index`, so files can be
processed on worker threads; all workers share one `FactEmitter`, and
therefore one `DedupIndex`, and one `SourceReader`.
"""

import logging
import os
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

import clang.cindex as clang
from pydantic import BaseModel, Field

from declfacts.clang_frontend import (
    PARSE_OPTIONS,
    ClangDeclaration,
    ClangEnum,
    ClangRecord,
    ClangTypeResolver,
    SourceReader,
)
from declfacts.config import ExtractConfig
from declfacts.dedup import DedupIndex
from declfacts.emitters import FactEmitter
from declfacts.errors import ExtractionError

logger = logging.getLogger(__name__)

RECORD_KINDS = {
    clang.CursorKind.STRUCT_DECL,  # type: ignore
    clang.CursorKind.UNION_DECL,  # type: ignore
}

# Declarations whose children may hold further top-level-like declarations.
CONTAINER_KINDS = RECORD_KINDS | {
    clang.CursorKind.NAMESPACE,  # type: ignore
    clang.CursorKind.LINKAGE_SPEC,  # type: ignore
    clang.CursorKind.UNEXPOSED_DECL,  # type: ignore
}


class ExtractionSummary(BaseModel):
    """Outcome of an extraction run."""

    files_processed: int = 0
    files_failed: list[str] = Field(default_factory=list)
    written: dict[str, int] = Field(default_factory=dict)

    @property
    def total_written(self) -> int:
        return sum(self.written.values())


class DeclarationExtractor:
    """Extracts declaration, enum-value and struct-relation facts from C sources."""

    def __init__(
        self,
        config: ExtractConfig,
        emitter: FactEmitter | None = None,
        index: DedupIndex | None = None,
    ):
        self.config = config
        self.index = index or DedupIndex()
        self.emitter = emitter or FactEmitter(self.index, ClangTypeResolver())
        self.reader = SourceReader()
        self._root = config.source_root.resolve()

    def find_sources(self, root: Path | None = None) -> list[Path]:
        """All files under `root` with a configured extension, sorted."""
        root = root or self.config.source_root
        if root.is_file():
            return [root]

        sources = []
        for dirpath, _, files in os.walk(root):
            for file in files:
                if Path(file).suffix in self.config.extensions:
                    sources.append(Path(dirpath) / file)
        return sorted(sources)

    def extract_all(self, paths: list[Path] | None = None) -> ExtractionSummary:
        paths = self.find_sources() if paths is None else paths

        summary = ExtractionSummary()
        written: Counter[str] = Counter()
        with ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
            futures = {pool.submit(self.extract_file, path): path for path in paths}
            for future in as_completed(futures):
                path = futures[future]
                try:
                    written.update(future.result())
                except ExtractionError as e:
                    logger.warning("%s", e)
                    summary.files_failed.append(str(path))
                    continue
                summary.files_processed += 1

        summary.files_failed.sort()
        summary.written = dict(sorted(written.items()))
        return summary

    def extract_file(self, path: Path) -> Counter[str]:
        """Parse one file and emit every fact it declares; returns lines written per kind."""
        logger.info("Extracting %s", path)
        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        index = clang.Index.create()
        try:
            tu = index.parse(str(path), args=self.config.parse_args(), options=PARSE_OPTIONS)
        except clang.TranslationUnitLoadError as e:
            raise ExtractionError(path, str(e)) from e

        written: Counter[str] = Counter()
        for cursor in tu.cursor.get_children():
            self._visit(cursor, written)
        return written

    def _should_visit(self, cursor: clang.Cursor) -> bool:
        location = cursor.location
        if location.file is None:
            return False
        if location.is_in_system_header:
            return self.config.include_system_headers
        if not self.config.include_system_headers:
            return Path(location.file.name).resolve().is_relative_to(self._root)
        return True

    def _visit(self, cursor: clang.Cursor, written: Counter[str]) -> None:
        if not self._should_visit(cursor):
            return

        kind = cursor.kind
        if kind == clang.CursorKind.FUNCTION_DECL:  # type: ignore
            self._emit_declaration(ClangDeclaration(cursor, self.reader), "functions", written)
        elif kind == clang.CursorKind.TYPEDEF_DECL:  # type: ignore
            self._visit_typedef(cursor, written)
        elif kind == clang.CursorKind.ENUM_DECL and cursor.is_definition():  # type: ignore
            enum = ClangEnum(cursor, self.reader)
            self._emit_declaration(enum, "enums", written)
            if self.emitter.emit_enum_values(enum, self.config.output_path("enum_values")):
                written["enum_values"] += 1
        elif kind in RECORD_KINDS and cursor.is_definition():
            record = ClangRecord(cursor, self.reader)
            self._emit_declaration(record, "structs", written)
            self._emit_relations(record, written)

        if kind in CONTAINER_KINDS:
            for child in cursor.get_children():
                self._visit(child, written)

    def _visit_typedef(self, cursor: clang.Cursor, written: Counter[str]) -> None:
        alias = ClangDeclaration(cursor, self.reader)
        self._emit_declaration(alias, "typedefs", written, is_typedef=True, alias_name=alias.name)

        # typedef struct {...} Name; the struct is only reachable through its alias
        underlying = cursor.underlying_typedef_type
        while underlying.kind == clang.TypeKind.ELABORATED:  # type: ignore
            underlying = underlying.get_named_type()
        if underlying.kind != clang.TypeKind.RECORD:  # type: ignore
            return
        record = ClangRecord(underlying.get_declaration(), self.reader)
        if not record.name and record.cursor.is_definition():
            self._emit_relations(record, written, struct_name=alias.name)

    def _emit_declaration(
        self,
        decl: ClangDeclaration,
        kind: str,
        written: Counter[str],
        is_typedef: bool = False,
        alias_name: str = "",
    ) -> None:
        destination = self.config.output_path(kind)  # type: ignore[arg-type]
        if self.emitter.emit_declaration(decl, destination, is_typedef, alias_name):
            written[kind] += 1

    def _emit_relations(
        self, record: ClangRecord, written: Counter[str], struct_name: str = ""
    ) -> None:
        destination = self.config.output_path("struct_relations")
        if self.emitter.emit_struct_relations(record, destination, struct_name):
            written["struct_relations"] += 1
