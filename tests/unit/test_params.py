"""Unit tests for value normalization and emulated binding."""

from __future__ import annotations

import pytest

from portable_query.core.enums import ErrorCode
from portable_query.core.exceptions import AccessViolationError, DatabaseError, MismatchError
from portable_query.core.params import coerce_values, read_opaque


class TestCoerceValues:
    def test_none(self) -> None:
        assert coerce_values(None) == ()

    def test_list_and_tuple(self) -> None:
        assert coerce_values([1, 2]) == (1, 2)
        assert coerce_values((1, 2)) == (1, 2)

    def test_mapping_keeps_insertion_order(self) -> None:
        assert coerce_values({"b": 2, "a": 1}) == (2, 1)

    def test_scalar_is_wrapped(self) -> None:
        assert coerce_values("x") == ("x",)
        assert coerce_values(0) == (0,)


class TestCompile:
    def test_all_placeholder_kinds(self, db, write_file) -> None:
        path = write_file("blob.txt", "it's a file")
        stmt = db.prepare("INSERT INTO t (a,b,c) VALUES (?,!,&)")
        sql = db.compile(stmt, ["O'Reilly", "NOW()", str(path)])
        assert sql == "INSERT INTO t (a,b,c) VALUES ('O''Reilly',NOW(),'it''s a file')"

    def test_scalar_types(self, db) -> None:
        stmt = db.prepare("SELECT ?, ?, ?, ?, ?")
        assert db.compile(stmt, [None, True, 3, 1.5, "x"]) == "SELECT NULL, 1, 3, '1.5', 'x'"

    def test_single_scalar_value(self, db) -> None:
        stmt = db.prepare("SELECT * FROM t WHERE id = ?")
        assert db.compile(stmt, 7) == "SELECT * FROM t WHERE id = 7"

    def test_records_parameters(self, db) -> None:
        stmt = db.prepare("SELECT ?, ?")
        db.compile(stmt, (1, "a"))
        assert db.last_parameters == [1, "a"]

    def test_escaped_placeholder(self, db) -> None:
        stmt = db.prepare(r"SELECT 'really\?' FROM t WHERE a = ?")
        assert db.compile(stmt, [1]) == "SELECT 'really?' FROM t WHERE a = 1"

    def test_too_few_values(self, db) -> None:
        stmt = db.prepare("SELECT ? FROM t WHERE a = ?")
        with pytest.raises(MismatchError) as exc_info:
            db.compile(stmt, [1])
        assert exc_info.value.code == ErrorCode.MISMATCH
        assert db.last_query == "SELECT   FROM t WHERE a =  "

    def test_too_many_values(self, db) -> None:
        stmt = db.prepare("SELECT ?")
        with pytest.raises(MismatchError):
            db.compile(stmt, [1, 2])

    def test_missing_opaque_file(self, db, tmp_path) -> None:
        stmt = db.prepare("INSERT INTO t (data) VALUES (&)")
        with pytest.raises(AccessViolationError):
            db.compile(stmt, [str(tmp_path / "missing.bin")])

    def test_binary_opaque_file(self, db, write_file) -> None:
        path = write_file("x.bin", b"\x89PNG\r\n\x1a\n\xff")
        stmt = db.prepare("INSERT INTO tbl (a,b,c) VALUES (?, !, &)")
        sql = db.compile(stmt, ["x", "NOW()", path])
        assert sql == "INSERT INTO tbl (a,b,c) VALUES ('x', NOW(), X'89504E470D0A1A0AFF')"

    def test_read_opaque_keeps_bytes(self, write_file) -> None:
        content = bytes(range(256))
        assert read_opaque(write_file("all.bin", content), "") == content

    def test_read_opaque_text(self, write_file) -> None:
        assert read_opaque(write_file("note.txt", "caf\u00e9"), "") == "caf\u00e9"

    def test_unknown_handle(self, db) -> None:
        with pytest.raises(DatabaseError) as exc_info:
            db.compile(99, [])
        assert exc_info.value.code == ErrorCode.INVALID
