#!/usr/bin/env python3
"""
Test cases for the fact emitters, using synthetic declarations.
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from declfacts.dedup import DedupIndex
from declfacts.emitters import FactEmitter
from fakes import Alias, FakeDecl, FakeEnum, FakeRecord, FakeResolver, Ptr, Scalar


@pytest.fixture
def emitter():
    return FactEmitter(DedupIndex(), FakeResolver())


@pytest.fixture
def out(tmp_path):
    return tmp_path / "out.jsonl"


def read_lines(path):
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestDeclarationEmitter:
    def test_plain_declaration(self, emitter, out):
        decl = FakeDecl("area", loc="/src/shapes.h:5", source="int area(struct Polygon *p)")

        assert emitter.emit_declaration(decl, out) is True

        assert read_lines(out) == [
            {
                "name": "area",
                "source": "int area(struct Polygon *p)",
                "filename": "/src/shapes.h:5",
            }
        ]

    def test_typedef_carries_alias(self, emitter, out):
        decl = FakeDecl("Point", loc="/src/shapes.h:1", source="typedef struct {...} Point")

        emitter.emit_declaration(decl, out, is_typedef=True, alias_name="Point")

        (record,) = read_lines(out)
        assert record["alias"] == "Point"

    def test_alias_ignored_for_non_typedef(self, emitter, out):
        emitter.emit_declaration(FakeDecl("f"), out, is_typedef=False, alias_name="g")

        (record,) = read_lines(out)
        assert "alias" not in record

    def test_unrecoverable_source_is_empty(self, emitter, out):
        emitter.emit_declaration(FakeDecl("from_macro", source=""), out)

        (record,) = read_lines(out)
        assert record["source"] == ""

    def test_idempotent(self, emitter, out):
        decl = FakeDecl("f", loc="/src/a.c:3")

        assert emitter.emit_declaration(decl, out) is True
        assert emitter.emit_declaration(FakeDecl("f", loc="/src/a.c:3"), out) is False

        assert len(read_lines(out)) == 1

    def test_key_includes_destination_and_alias(self, emitter, tmp_path):
        decl = FakeDecl("T", loc="/src/a.h:1")
        first, second = tmp_path / "a.jsonl", tmp_path / "b.jsonl"

        assert emitter.emit_declaration(decl, first, True, "T")
        assert emitter.emit_declaration(decl, first, True, "U")
        assert emitter.emit_declaration(decl, second, True, "T")

        assert [r["alias"] for r in read_lines(first)] == ["T", "U"]
        assert len(read_lines(second)) == 1

    def test_unnamed_declaration_skipped(self, emitter, out):
        assert emitter.emit_declaration(FakeDecl(""), out) is False
        assert not out.exists()

    def test_appends_to_existing_log(self, emitter, out):
        out.write_text('{"name": "old"}\n')

        emitter.emit_declaration(FakeDecl("new"), out)

        assert [r["name"] for r in read_lines(out)] == ["old", "new"]


class TestEnumEmitter:
    def test_enum_values(self, emitter, out):
        decl = FakeEnum("Color", members=[("A", 0), ("B", 5), ("C", 6)])

        assert emitter.emit_enum_values(decl, out) is True

        assert out.read_text() == '{"Color":{"A":0,"B":5,"C":6}}\n'

    def test_negative_values(self, emitter, out):
        emitter.emit_enum_values(FakeEnum("Err", members=[("E_FAIL", -1), ("E_OK", 0)]), out)

        assert read_lines(out) == [{"Err": {"E_FAIL": -1, "E_OK": 0}}]

    def test_anonymous_enum_skipped(self, emitter, out):
        assert emitter.emit_enum_values(FakeEnum("", members=[("X", 1)]), out) is False
        assert not out.exists()

    def test_empty_enum(self, emitter, out):
        emitter.emit_enum_values(FakeEnum("Empty"), out)

        assert read_lines(out) == [{"Empty": {}}]

    def test_idempotent(self, emitter, out):
        decl = FakeEnum("Color", members=[("A", 0)])

        emitter.emit_enum_values(decl, out)
        emitter.emit_enum_values(decl, out)

        assert len(read_lines(out)) == 1


class TestStructRelationEmitter:
    def test_relations(self, emitter, out):
        point = FakeRecord("Point", fields=[Scalar("double")])
        polygon = FakeRecord("Polygon", loc="/src/shapes.h:3")
        polygon.fields = [Ptr(point), Ptr(polygon)]

        assert emitter.emit_struct_relations(polygon, out) is True

        assert out.read_text() == '{"Polygon":["Point"]}\n'

    def test_no_relations_is_empty_array(self, emitter, out):
        emitter.emit_struct_relations(FakeRecord("Leaf", fields=[Scalar()]), out)

        assert read_lines(out) == [{"Leaf": []}]

    def test_override_name(self, emitter, out):
        anon = FakeRecord("", fields=[Scalar()])

        emitter.emit_struct_relations(anon, out, struct_name="Point")

        assert read_lines(out) == [{"Point": []}]

    def test_own_name_beats_override(self, emitter, out):
        own = FakeRecord("Own", fields=[Scalar()])

        emitter.emit_struct_relations(own, out, struct_name="Other")

        assert read_lines(out) == [{"Own": []}]

    def test_anonymous_alias_name(self, emitter, out):
        node = FakeRecord("", anon_alias="List")
        node.fields = [Ptr(Alias("List", node))]

        emitter.emit_struct_relations(node, out)

        assert read_lines(out) == [{"List": []}]

    def test_unnameable_record_skipped(self, emitter, out):
        assert emitter.emit_struct_relations(FakeRecord(""), out) is False
        assert not out.exists()

    def test_idempotent_across_threads(self, emitter, out):
        b = FakeRecord("B")
        a = FakeRecord("A", fields=[Ptr(b)])

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: emitter.emit_struct_relations(a, out), range(32)))

        assert results.count(True) == 1
        assert read_lines(out) == [{"A": ["B"]}]

    def test_shared_index_across_variants(self, tmp_path):
        index = DedupIndex()
        emitter = FactEmitter(index, FakeResolver())
        record = FakeRecord("S", loc="/src/s.h:2")

        emitter.emit_declaration(record, tmp_path / "structs.jsonl")
        emitter.emit_struct_relations(record, tmp_path / "relations.jsonl")

        assert len(index) == 2
