"""Tests for SELECT compilation."""

import pytest

from query_builder import InvalidQueryArgumentError, QueryBuilder


@pytest.fixture
def query(recording_driver):
    return QueryBuilder(recording_driver)


def test_select_all_by_default(query):
    """A bare table query selects every column."""
    assert query.table("users").to_sql_with_bindings() == ("SELECT * FROM users", [])


def test_select_columns_and_distinct(query):
    """Selected columns and DISTINCT are emitted in order."""
    sql = query.table("users").select(["id", "name"]).distinct().to_sql()
    assert sql == "SELECT DISTINCT id, name FROM users"


def test_select_raw_replaces_star_then_appends(query):
    """The first raw expression replaces '*'; later ones append."""
    sql = query.table("users").select_raw("COUNT(*) AS total").select_raw("MAX(id)").to_sql()
    assert sql == "SELECT COUNT(*) AS total, MAX(id) FROM users"


def test_where_variants_and_connectives(query):
    """Mixed predicates keep their connectives; the first one is dropped."""
    sql, bindings = (
        query.table("users")
        .where("age", ">", 18)
        .or_where("role", "admin")
        .where_in("status", ["a", "b"])
        .where_not_null("email")
        .or_where_null("deleted_at")
        .where_between("score", 1, 10)
        .where_not_between("rank", 5, 6)
        .where_raw("YEAR(created_at) = ?", [2024])
        .where_column("updated_at", ">", "created_at")
        .to_sql_with_bindings()
    )

    assert sql == (
        "SELECT * FROM users WHERE age > ? OR role = ? AND status IN (?, ?) "
        "AND email IS NOT NULL OR deleted_at IS NULL AND score BETWEEN ? AND ? "
        "AND rank NOT BETWEEN ? AND ? AND YEAR(created_at) = ? AND updated_at > created_at"
    )
    assert bindings == [18, "admin", "a", "b", 1, 10, 5, 6, 2024]


def test_where_in_with_empty_list(query):
    """Empty IN lists compile to constant predicates without placeholders."""
    sql, bindings = (
        query.table("t").where_in("a", []).or_where_not_in("b", []).to_sql_with_bindings()
    )
    assert sql == "SELECT * FROM t WHERE 0 = 1 OR 1 = 1"
    assert bindings == []


def test_where_group_nests_predicates(query):
    """Groups are parenthesized and empty groups are skipped."""
    sql, bindings = (
        query.table("users")
        .where("active", 1)
        .where_group(lambda q: q.where("role", "admin").or_where("role", "owner"))
        .or_where_group(lambda q: None)
        .to_sql_with_bindings()
    )

    assert sql == "SELECT * FROM users WHERE active = ? AND (role = ? OR role = ?)"
    assert bindings == [1, "admin", "owner"]


def test_joins_grouping_having_order_limit(query):
    """Every clause is emitted in SQL order."""
    sql, bindings = (
        query.table("users")
        .select(["users.id", "COUNT(posts.id) AS posts"])
        .join("posts", "posts.user_id", "=", "users.id")
        .left_join("profiles", "profiles.user_id", "=", "users.id")
        .right_join("teams", "teams.id", "=", "users.team_id")
        .where("users.active", 1)
        .group_by(["users.id"])
        .having("posts", ">", 2)
        .or_having("posts", "=", 0)
        .order_by("users.id", "desc")
        .limit(10)
        .offset(20)
        .to_sql_with_bindings()
    )

    assert sql == (
        "SELECT users.id, COUNT(posts.id) AS posts FROM users "
        "INNER JOIN posts ON posts.user_id = users.id "
        "LEFT JOIN profiles ON profiles.user_id = users.id "
        "RIGHT JOIN teams ON teams.id = users.team_id "
        "WHERE users.active = ? GROUP BY users.id HAVING posts > ? OR posts = ? "
        "ORDER BY users.id DESC LIMIT 10 OFFSET 20"
    )
    assert bindings == [1, 2, 0]


def test_offset_without_limit_is_ignored(query):
    """MySQL cannot express OFFSET without LIMIT, so it is left out."""
    assert query.table("t").offset(5).to_sql() == "SELECT * FROM t"


def test_sub_query_column_bindings_come_first(query):
    """A sub-select in the column list binds before the outer WHERE."""
    sql, bindings = (
        query.table("users")
        .select(["id"])
        .sub_query(
            lambda q: q.table("posts").select_raw("COUNT(*)").where("posts.kind", "draft"),
            "drafts",
        )
        .where("id", ">", 3)
        .to_sql_with_bindings()
    )

    assert sql == (
        "SELECT id, (SELECT COUNT(*) FROM posts WHERE posts.kind = ?) AS drafts "
        "FROM users WHERE id > ?"
    )
    assert bindings == ["draft", 3]


def test_to_sql_does_not_reset(query):
    """Compiling for inspection keeps the intent for later execution."""
    query.table("users").where("id", 1)
    first = query.to_sql_with_bindings()

    assert query.to_sql_with_bindings() == first


def test_nested_groups_strip_leading_connective_at_every_depth(query):
    """Each nested group is parenthesized without a leading connective."""
    sql, bindings = (
        query.table("t")
        .or_where_group(
            lambda q: q.or_where("a", 1).where_group(
                lambda inner: inner.or_where("b", 2).or_where("c", 3)
            )
        )
        .to_sql_with_bindings()
    )

    assert sql == "SELECT * FROM t WHERE (a = ? AND (b = ? OR c = ?))"
    assert bindings == [1, 2, 3]


def test_groups_of_only_empty_groups_are_skipped(query):
    """A group whose children compile to nothing is dropped with its connective."""
    sql, bindings = (
        query.table("t")
        .where("a", 1)
        .where_group(lambda q: q.where_group(lambda r: None))
        .or_where_group(lambda q: q.where_group(lambda r: None).or_where("b", 2))
        .to_sql_with_bindings()
    )

    assert sql == "SELECT * FROM t WHERE a = ? OR (b = ?)"
    assert bindings == [1, 2]


def test_where_any_all_none_compile_one_comparison_per_column(query):
    """Multi-column predicates repeat the value once per column."""
    sql, bindings = (
        query.table("users")
        .where_any(["name", "email"], "like", "%ad%")
        .where_all(["age", "score"], ">", 5)
        .where_none(["role", "state"], "banned", boolean="or")
        .to_sql_with_bindings()
    )

    assert sql == (
        "SELECT * FROM users WHERE (name LIKE ? OR email LIKE ?) "
        "AND (age > ? AND score > ?) OR NOT (role = ? OR state = ?)"
    )
    assert bindings == ["%ad%", "%ad%", 5, 5, "banned", "banned"]


def test_where_any_needs_columns(query):
    """An empty column list is rejected."""
    with pytest.raises(InvalidQueryArgumentError):
        query.table("users").where_any([], "=", 1)


def test_grouped_count_wraps_select_in_derived_table(query, recording_driver):
    """Aggregates over grouped queries count the groups, not the raw rows."""
    (
        query.table("orders")
        .select("user_id")
        .group_by("user_id")
        .having("COUNT(*)", ">", 1)
        .order_by("user_id")
        .limit(5)
        .count()
    )

    assert recording_driver.calls == [
        (
            "statement",
            "SELECT COUNT(*) AS count_result FROM "
            "(SELECT user_id FROM orders GROUP BY user_id HAVING COUNT(*) > ?) AS sub",
            [1],
        )
    ]


def test_find_uses_configurable_primary_key(recording_driver):
    """find() filters on the primary key and fetches a single row."""
    QueryBuilder(recording_driver, primary_key="uuid").table("users").find("u-1")
    QueryBuilder(recording_driver).table("posts").set_primary_key("slug").find("hello")
    QueryBuilder(recording_driver).table("tags").find(7)

    assert recording_driver.calls == [
        ("statement", "SELECT * FROM users WHERE uuid = ? LIMIT 1", ["u-1"]),
        ("statement", "SELECT * FROM posts WHERE slug = ? LIMIT 1", ["hello"]),
        ("statement", "SELECT * FROM tags WHERE id = ? LIMIT 1", [7]),
    ]
