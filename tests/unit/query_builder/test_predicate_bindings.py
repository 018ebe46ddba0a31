"""Placeholder and binding alignment checks, parsed with sqlglot."""

import sqlglot
from sqlglot import exp

from query_builder import QueryBuilder


def _placeholder_count(sql: str) -> int:
    return len(list(sqlglot.parse_one(sql, read="mysql").find_all(exp.Placeholder)))


def _inline(sql: str, bindings) -> str:
    for value in bindings:
        literal = f"'{value}'" if isinstance(value, str) else str(value)
        sql = sql.replace("?", literal, 1)
    return sql


def test_placeholders_match_bindings_for_nested_query(recording_driver):
    """Every ? in a complex query has exactly one binding, in order."""
    sql, bindings = (
        QueryBuilder(recording_driver)
        .table("orders")
        .sub_query(lambda q: q.table("items").select_raw("SUM(qty)").where("sku", "x-1"), "qty")
        .where("total", ">=", 100)
        .where_group(lambda q: q.where_in("state", ["new", "paid"]).or_where_null("state"))
        .where_between("placed_at", "2024-01-01", "2024-12-31")
        .having("qty", ">", 2)
        .to_sql_with_bindings()
    )

    assert _placeholder_count(sql) == len(bindings)
    assert _inline(sql, bindings) == (
        "SELECT *, (SELECT SUM(qty) FROM items WHERE sku = 'x-1') AS qty FROM orders "
        "WHERE total >= 100 AND (state IN ('new', 'paid') OR state IS NULL) "
        "AND placed_at BETWEEN '2024-01-01' AND '2024-12-31' HAVING qty > 2"
    )


def test_upsert_binds_values_twice_in_order(recording_driver):
    """insert_or_update binds the insert values then the update values."""
    QueryBuilder(recording_driver).table("counters").insert_or_update({"name": "hits", "n": 1})

    _, sql, bindings = recording_driver.calls[0]
    assert sql == (
        "INSERT INTO counters (name, n) VALUES (?, ?) ON DUPLICATE KEY UPDATE name = ?, n = ?"
    )
    assert bindings == ["hits", 1, "hits", 1]
    assert _placeholder_count(sql) == len(bindings)


def test_update_binds_set_values_before_where(recording_driver):
    """SET bindings precede WHERE bindings."""
    QueryBuilder(recording_driver).table("users").where("id", 7).update({"name": "x", "age": 3})

    _, sql, bindings = recording_driver.calls[0]
    assert sql == "UPDATE users SET name = ?, age = ? WHERE id = ?"
    assert bindings == ["x", 3, 7]
    assert _placeholder_count(sql) == len(bindings)


def test_multi_column_predicates_bind_once_per_column(recording_driver):
    """where_any/all/none emit one placeholder and one binding per column."""
    sql, bindings = (
        QueryBuilder(recording_driver)
        .table("users")
        .where("active", 1)
        .where_any(["first_name", "last_name"], "ada")
        .where_none(["role", "state", "tier"], "!=", "x", boolean="OR")
        .where_group(lambda q: q.where_all(["a", "b"], ">=", 3))
        .to_sql_with_bindings()
    )

    assert _placeholder_count(sql) == len(bindings) == 8
    assert _inline(sql, bindings) == (
        "SELECT * FROM users WHERE active = 1 AND (first_name = 'ada' OR last_name = 'ada') "
        "OR NOT (role != 'x' OR state != 'x' OR tier != 'x') AND ((a >= 3 AND b >= 3))"
    )


def test_grouped_count_binds_inner_query_values(recording_driver):
    """The derived-table count keeps the inner query's bindings in order."""
    (
        QueryBuilder(recording_driver)
        .table("orders")
        .where("state", "paid")
        .group_by("user_id")
        .having("SUM(total)", ">", 100)
        .count()
    )

    _, sql, bindings = recording_driver.calls[0]
    assert bindings == ["paid", 100]
    assert _placeholder_count(sql) == len(bindings)
