"""Tests for the base builder, grammar rendering and the connection wrapper."""

import sqlite3

import pytest

from common.cache.memory_store import ArrayStore
from database.builder import BaseQueryBuilder
from database.connection import Connection
from database.grammar import Grammar, MySqlGrammar

from conftest import RecordingConnection


@pytest.fixture
def base():
    return BaseQueryBuilder(RecordingConnection()).from_("users")


class TestGrammar:
    def test_plain_select(self, base) -> None:
        assert base.to_sql() == 'select * from "users"'

    def test_full_shape(self, base) -> None:
        base.select(["id", "users.name as n"]).where("age", ">=", 18).or_where("vip", 1)
        base.where_in("country", ["fr", "de"]).order_by("name", "DESC").limit(10).offset(20)

        assert base.to_sql() == (
            'select "id", "users"."name" as "n" from "users" '
            'where "age" >= ? or "vip" = ? and "country" in (?, ?) '
            'order by "name" desc limit 10 offset 20'
        )
        assert base.get_bindings() == [18, 1, "fr", "de"]

    def test_null_comparison_has_no_binding(self, base) -> None:
        base.where("deleted_at", None)
        assert base.to_sql() == 'select * from "users" where "deleted_at" is null'
        assert base.get_bindings() == []

    @pytest.mark.parametrize("operator", ["!=", "<>"])
    def test_not_null_comparison(self, base, operator) -> None:
        base.where("deleted_at", operator, None)
        assert base.to_sql() == 'select * from "users" where "deleted_at" is not null'
        assert base.get_bindings() == []

    def test_mysql_grammar(self) -> None:
        connection = RecordingConnection()
        connection.grammar = MySqlGrammar()
        query = BaseQueryBuilder(connection).from_("users").where("id", 1)
        assert query.to_sql() == "select * from `users` where `id` = %s"

    def test_distinct_select(self, base) -> None:
        assert base.distinct().select("email").to_sql() == 'select distinct "email" from "users"'


class TestBaseQueryBuilder:
    def test_missing_table(self) -> None:
        with pytest.raises(ValueError, match="no table"):
            BaseQueryBuilder(RecordingConnection()).to_sql()

    def test_unsupported_operator(self, base) -> None:
        with pytest.raises(ValueError, match="Unsupported operator"):
            base.where("id", "~", 1)

    def test_empty_where_in(self, base) -> None:
        with pytest.raises(ValueError):
            base.where_in("id", [])

    def test_bad_direction(self, base) -> None:
        with pytest.raises(ValueError):
            base.order_by("id", "sideways")

    def test_get_fresh_sets_columns(self, base) -> None:
        base.get_fresh(["id"])
        assert base.columns == ["id"]
        assert base.connection.selects == [('select "id" from "users"', [])]

    def test_clone_is_independent(self, base) -> None:
        base.where("id", 1).order_by("id")
        cloned = base.clone().where("name", "x").order_by("name")

        assert len(base.wheres) == 1
        assert len(base.orders) == 1
        assert len(cloned.wheres) == 2

    def test_grammar_can_be_overridden(self) -> None:
        query = BaseQueryBuilder(RecordingConnection(), grammar=MySqlGrammar())
        assert isinstance(query.grammar, MySqlGrammar)


class TestSQLiteConnection:
    """End to end against an in-memory SQLite database."""

    @pytest.fixture
    def sqlite_connection(self):
        raw = sqlite3.connect(":memory:")
        raw.execute("create table users (id integer primary key, name text, score integer)")
        raw.executemany(
            "insert into users (name, score) values (?, ?)",
            [("alpha", 10), ("beta", 20), ("gamma", 30)],
        )
        connection = Connection("sqlite", raw, grammar=Grammar(), cache=ArrayStore())
        yield connection
        connection.close()

    def test_select_returns_mappings(self, sqlite_connection) -> None:
        rows = sqlite_connection.table("users").where("score", ">", 15).order_by("id").get(["id", "name"])
        assert rows == [{"id": 2, "name": "beta"}, {"id": 3, "name": "gamma"}]

    def test_aggregates(self, sqlite_connection) -> None:
        assert sqlite_connection.table("users").count() == 3
        assert sqlite_connection.table("users").sum("score") == 60
        assert sqlite_connection.table("users").max("score") == 30
        assert sqlite_connection.table("users").where("score", ">", 100).max("score") is None

    def test_cached_results_survive_data_changes(self, sqlite_connection) -> None:
        assert sqlite_connection.table("users").remember(5).count() == 3

        sqlite_connection.dbapi_connection.execute("insert into users (name, score) values ('delta', 40)")

        assert sqlite_connection.table("users").remember(5).count() == 3
        assert sqlite_connection.table("users").count() == 4

    def test_tag_flush_reveals_new_rows(self, sqlite_connection) -> None:
        def names():
            return [row["name"] for row in sqlite_connection.table("users").order_by("id")
                    .remember_forever().with_tags("users").get(["name"])]

        assert names() == ["alpha", "beta", "gamma"]
        sqlite_connection.dbapi_connection.execute("insert into users (name, score) values ('delta', 40)")
        assert names() == ["alpha", "beta", "gamma"]

        sqlite_connection.cache.tags("users").flush()
        assert names() == ["alpha", "beta", "gamma", "delta"]

    def test_first(self, sqlite_connection) -> None:
        assert sqlite_connection.table("users").order_by("score", "desc").first(["name"]) == {"name": "gamma"}
        assert sqlite_connection.table("users").where("id", 99).first() is None
