"""Unit tests for the retrieval helpers and Result."""

from __future__ import annotations

from dataclasses import dataclass
from types import SimpleNamespace

import pytest

from portable_query.core.enums import ErrorCode, FetchMode, Portability
from portable_query.core.exceptions import (
    DatabaseError,
    NoSuchFieldError,
    NotCapableError,
    TruncatedError,
)


@dataclass
class User:
    id: int
    name: str


class TestGetOne:
    def test_first_column_of_first_row(self, users_db) -> None:
        assert users_db.get_one("SELECT id, name FROM users") == 1

    def test_no_rows(self, users_db) -> None:
        assert users_db.get_one("SELECT id, name FROM nobody") is None

    def test_with_params(self, users_db) -> None:
        users_db.script("SELECT name FROM users WHERE id = 2", ["name"], [("bob",)])
        assert users_db.get_one("SELECT name FROM users WHERE id = ?", [2]) == "bob"

    def test_manipulation_statement(self, users_db) -> None:
        with pytest.raises(DatabaseError) as exc_info:
            users_db.get_one("DELETE FROM users")
        assert exc_info.value.code == ErrorCode.INVALID

    def test_result_is_freed(self, users_db) -> None:
        users_db.get_one("SELECT id, name FROM users")
        assert len(users_db.freed) == 1


class TestGetRow:
    def test_ordered(self, users_db) -> None:
        assert users_db.get_row("SELECT id, name FROM users") == [1, "alice"]

    def test_assoc(self, users_db) -> None:
        row = users_db.get_row("SELECT id, name FROM users", fetchmode=FetchMode.ASSOC)
        assert row == {"id": 1, "name": "alice"}

    def test_default_follows_connection_mode(self, users_db) -> None:
        users_db.set_fetch_mode(FetchMode.ASSOC)
        assert users_db.get_row("SELECT id, name FROM users") == {"id": 1, "name": "alice"}

    def test_object(self, users_db) -> None:
        row = users_db.get_row("SELECT id, name FROM users", fetchmode=FetchMode.OBJECT)
        assert isinstance(row, SimpleNamespace)
        assert row.name == "alice"

    def test_object_class(self, users_db) -> None:
        users_db.set_fetch_mode(FetchMode.OBJECT, User)
        assert users_db.get_row("SELECT id, name FROM users") == User(1, "alice")

    def test_no_rows(self, users_db) -> None:
        assert users_db.get_row("SELECT id, name FROM nobody") is None


class TestGetCol:
    def test_by_position(self, users_db) -> None:
        assert users_db.get_col("SELECT id, name FROM users", 1) == ["alice", "bob"]

    def test_by_name(self, users_db) -> None:
        assert users_db.get_col("SELECT id, name FROM users", "id") == [1, 2]

    def test_default_first_column(self, users_db) -> None:
        assert users_db.get_col("SELECT id FROM users") == [1, 2]

    def test_empty_result(self, users_db) -> None:
        assert users_db.get_col("SELECT id, name FROM nobody", 5) == []

    def test_missing_position(self, users_db) -> None:
        with pytest.raises(NoSuchFieldError):
            users_db.get_col("SELECT id, name FROM users", 5)

    def test_missing_name(self, users_db) -> None:
        with pytest.raises(NoSuchFieldError) as exc_info:
            users_db.get_col("SELECT id, name FROM users", "email")
        assert exc_info.value.code == ErrorCode.NOSUCHFIELD
        assert len(users_db.freed) == 1

    def test_error_mid_iteration_discards_rows(self, users_db) -> None:
        users_db.script("SELECT id FROM flaky", ["id"], [(1,), (2,), (3,)], fail_after=2)
        with pytest.raises(DatabaseError) as exc_info:
            users_db.get_col("SELECT id FROM flaky")
        assert exc_info.value.native_code == 2013
        assert len(users_db.freed) == 1


class TestGetAssoc:
    def test_two_columns_scalar_values(self, users_db) -> None:
        assert users_db.get_assoc("SELECT id, name FROM users") == {1: "alice", 2: "bob"}

    def test_two_columns_force_array(self, users_db) -> None:
        result = users_db.get_assoc("SELECT id, name FROM users", force_array=True)
        assert result == {1: ["alice"], 2: ["bob"]}

    def test_two_columns_force_array_assoc(self, users_db) -> None:
        result = users_db.get_assoc(
            "SELECT id, name FROM users", force_array=True, fetchmode=FetchMode.ASSOC
        )
        assert result == {1: {"name": "alice"}, 2: {"name": "bob"}}

    def test_more_columns_ordered_last_row_wins(self, users_db) -> None:
        result = users_db.get_assoc("SELECT id, name, email FROM users")
        assert result == {1: ["alice2", "a2@ex.com"], 2: ["bob", "b@ex.com"]}

    def test_more_columns_assoc(self, users_db) -> None:
        result = users_db.get_assoc("SELECT id, name, email FROM users", fetchmode=FetchMode.ASSOC)
        assert result[2] == {"name": "bob", "email": "b@ex.com"}

    def test_more_columns_object(self, users_db) -> None:
        result = users_db.get_assoc("SELECT id, name, email FROM users", fetchmode=FetchMode.OBJECT)
        assert result[2].email == "b@ex.com"
        assert result[2].id == 2

    def test_group(self, users_db) -> None:
        result = users_db.get_assoc("SELECT id, name, email FROM users", group=True)
        assert result == {
            1: [["alice", "a@ex.com"], ["alice2", "a2@ex.com"]],
            2: [["bob", "b@ex.com"]],
        }

    def test_group_two_columns(self, users_db) -> None:
        users_db.script("SELECT team, name FROM users", ["team", "name"], [("a", "x"), ("a", "y")])
        assert users_db.get_assoc("SELECT team, name FROM users", group=True) == {"a": ["x", "y"]}
        assert users_db.get_assoc("SELECT team, name FROM users") == {"a": "y"}

    def test_single_column_is_truncated(self, users_db) -> None:
        with pytest.raises(TruncatedError) as exc_info:
            users_db.get_assoc("SELECT id FROM users")
        assert exc_info.value.code == ErrorCode.TRUNCATED
        assert len(users_db.freed) == 1

    def test_error_mid_iteration_discards_rows(self, users_db) -> None:
        users_db.script(
            "SELECT id, name FROM flaky", ["id", "name"], [(1, "a"), (2, "b")], fail_after=1
        )
        with pytest.raises(DatabaseError) as exc_info:
            users_db.get_assoc("SELECT id, name FROM flaky")
        assert exc_info.value.native_code == 2013
        assert len(users_db.freed) == 1

    def test_invalid_fetchmode(self, users_db) -> None:
        with pytest.raises(DatabaseError) as exc_info:
            users_db.get_assoc("SELECT id, name, email FROM users", fetchmode=FetchMode(16))
        assert exc_info.value.code == ErrorCode.ERROR


class TestGetAll:
    def test_ordered(self, users_db) -> None:
        assert users_db.get_all("SELECT id, name FROM users") == [[1, "alice"], [2, "bob"]]

    def test_assoc(self, users_db) -> None:
        rows = users_db.get_all("SELECT id, name FROM users", fetchmode=FetchMode.ASSOC)
        assert rows == [{"id": 1, "name": "alice"}, {"id": 2, "name": "bob"}]

    def test_empty(self, users_db) -> None:
        assert users_db.get_all("SELECT id, name FROM nobody") == []

    def test_flipped_assoc(self, users_db) -> None:
        result = users_db.get_all(
            "SELECT id, name FROM users", fetchmode=FetchMode.ASSOC | FetchMode.FLIPPED
        )
        assert result == {"id": [1, 2], "name": ["alice", "bob"]}

    def test_flipped_alone_uses_default_mode(self, users_db) -> None:
        result = users_db.get_all("SELECT id, name FROM users", fetchmode=FetchMode.FLIPPED)
        assert result == {0: [1, 2], 1: ["alice", "bob"]}

    def test_error_mid_iteration_discards_rows(self, users_db) -> None:
        users_db.script("SELECT id FROM flaky", ["id"], [(1,), (2,), (3,)], fail_after=2)
        with pytest.raises(DatabaseError) as exc_info:
            users_db.get_all("SELECT id FROM flaky")
        assert exc_info.value.native_code == 2013
        assert len(users_db.freed) == 1

    @pytest.mark.parametrize(
        "fetchmode",
        [FetchMode(16), 16, FetchMode(16) | FetchMode.FLIPPED, FetchMode.ORDERED | FetchMode.OBJECT],
    )
    def test_invalid_fetchmode(self, users_db, fetchmode) -> None:
        with pytest.raises(DatabaseError) as exc_info:
            users_db.get_all("SELECT id FROM users", fetchmode=fetchmode)
        assert exc_info.value.code == ErrorCode.ERROR

    def test_flipped_object(self, users_db) -> None:
        result = users_db.get_all(
            "SELECT id, name FROM users", fetchmode=FetchMode.OBJECT | FetchMode.FLIPPED
        )
        assert result == {"id": [1, 2], "name": ["alice", "bob"]}

    def test_flipped_alone_with_object_default(self, users_db) -> None:
        users_db.set_fetch_mode(FetchMode.OBJECT, User)
        result = users_db.get_all("SELECT id, name FROM users", fetchmode=FetchMode.FLIPPED)
        assert result == {"id": [1, 2], "name": ["alice", "bob"]}


class TestPortabilityOnRows:
    def test_lowercase_keys(self, db) -> None:
        db.set_option("portability", Portability.LOWERCASE)
        db.script("SELECT ID, Name FROM t", ["ID", "Name"], [(1, "x")])
        assert db.get_row("SELECT ID, Name FROM t", fetchmode=FetchMode.ASSOC) == {
            "id": 1,
            "name": "x",
        }

    def test_rtrim_and_null_to_empty(self, db) -> None:
        db.set_option("portability", Portability.RTRIM | Portability.NULL_TO_EMPTY)
        db.script("SELECT a, b FROM t", ["a", "b"], [("pad   ", None)])
        assert db.get_row("SELECT a, b FROM t") == ["pad", ""]

    def test_untouched_without_flags(self, db) -> None:
        db.script("SELECT a, b FROM t", ["a", "b"], [("pad   ", None)])
        assert db.get_row("SELECT a, b FROM t") == ["pad   ", None]


class TestResult:
    def test_iteration(self, users_db) -> None:
        with users_db.query("SELECT id, name FROM users") as result:
            assert result.num_cols() == 2
            assert result.column_names() == ["id", "name"]
            assert list(result) == [[1, "alice"], [2, "bob"]]
        assert result.freed

    def test_free_is_idempotent(self, users_db) -> None:
        result = users_db.query("SELECT id FROM users")
        result.free()
        result.free()
        assert len(users_db.freed) == 1
        assert result.fetch_row() is None

    def test_autofree(self, users_db) -> None:
        users_db.set_option("autofree", True)
        result = users_db.query("SELECT id FROM users")
        assert len(list(result)) == 2
        assert result.freed

    def test_num_rows_not_capable(self, users_db) -> None:
        result = users_db.query("SELECT id, name FROM users")
        with pytest.raises(NotCapableError):
            result.num_rows()

    def test_num_rows_emulated(self, users_db) -> None:
        users_db.set_option("portability", Portability.NUMROWS)
        users_db.script(
            "SELECT COUNT(*) FROM (SELECT id, name FROM users) count_query", ["count"], [(2,)]
        )
        result = users_db.query("SELECT id, name FROM users")
        assert result.num_rows() == 2
