"""End-to-end tests against an in-memory ``sqlite3`` database."""

import sqlite3
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Optional

import pytest

from sqlfill import (
    CancellationToken,
    ConnectionState,
    FillConfig,
    ImproperUsageError,
    MarkerPattern,
    ParameterSource,
    QueryCancelledError,
    QueryExecutionError,
    Record,
    SqliteConnectionHandle,
    TypeHintParseError,
    execute_command,
    execute_query,
)

pytestmark = pytest.mark.integration

SQUARE = r"(?P<open_marker>\[\[)(?P<param>.*?)?(?P<close_marker>\]\])"


@dataclass
class User:
    id: int
    name: str
    email: Optional[str] = None
    age: Optional[int] = None


def names(connection: sqlite3.Connection, query: str, params: object = None, **kwargs: object) -> "list[str]":
    with execute_query(connection, query, params, **kwargs) as result:  # type: ignore[arg-type]
        return [row.name for row in result]


def test_no_params_returns_all_rows(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT * FROM Users") as result:
        rows = list(result)
    assert len(rows) == 3
    assert list(rows[0]) == ["id", "name", "email", "age"]
    assert rows[0].name == "John"


def test_mapping_params(sqlite_connection: sqlite3.Connection) -> None:
    assert names(sqlite_connection, "SELECT name FROM Users WHERE age > {{minAge}} ORDER BY name", {"minAge": 28}) == [
        "Bob",
        "John",
    ]


def test_object_params(sqlite_connection: sqlite3.Connection) -> None:
    params = SimpleNamespace(name="Jane")
    assert names(sqlite_connection, "SELECT name FROM Users WHERE name = {{name}}", params) == ["Jane"]


def test_json_text_params(sqlite_connection: sqlite3.Connection) -> None:
    assert names(sqlite_connection, "SELECT name FROM Users WHERE name = {{name}}", '{"name": "Bob"}') == ["Bob"]


def test_multiple_params(sqlite_connection: sqlite3.Connection) -> None:
    query = "SELECT name FROM Users WHERE age >= {{minAge}} AND age <= {{maxAge}} ORDER BY name"
    assert names(sqlite_connection, query, {"minAge": 25, "maxAge": 35}) == ["Jane", "John"]


def test_param_used_multiple_times(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(
        sqlite_connection, "SELECT name FROM Users WHERE age >= {{age}} AND age < {{age}} + 10", {"age": 25}
    ) as result:
        assert [row.name for row in result] == ["John", "Jane"]
        assert result.statement is not None
        assert len(result.statement.parameters) == 1


def test_values_are_bound_not_spliced(sqlite_connection: sqlite3.Connection) -> None:
    query = "SELECT name FROM Users WHERE name = {{name}}"
    with execute_query(sqlite_connection, query, {"name": "x' OR '1'='1"}) as result:
        assert result.statement is not None
        assert result.statement.sql == "SELECT name FROM Users WHERE name = @vxv_1_name"
        assert list(result) == []


def test_no_matching_rows(sqlite_connection: sqlite3.Connection) -> None:
    assert names(sqlite_connection, "SELECT name FROM Users WHERE name = {{name}}", {"name": "NonExistent"}) == []


def test_insert_command(sqlite_connection: sqlite3.Connection) -> None:
    affected = execute_command(
        sqlite_connection,
        "INSERT INTO Users (name, email, age) VALUES ({{name}}, {{email}}, {{age}})",
        {"name": "Alice", "email": "alice@test.com", "age": 28},
    )
    assert affected == 1
    assert names(sqlite_connection, "SELECT name FROM Users WHERE email = {{email}}", {"email": "alice@test.com"}) == [
        "Alice"
    ]


def test_update_command(sqlite_connection: sqlite3.Connection) -> None:
    affected = execute_command(
        sqlite_connection, "UPDATE Users SET age = {{age}} WHERE name = {{name}}", {"age": 31, "name": "John"}
    )
    assert affected == 1
    with execute_query(sqlite_connection, "SELECT age FROM Users WHERE name = 'John'") as result:
        assert result.first() == {"age": 31}


def test_delete_command(sqlite_connection: sqlite3.Connection) -> None:
    assert execute_command(sqlite_connection, "DELETE FROM Users WHERE name = {{name}}", {"name": "Bob"}) == 1
    assert len(names(sqlite_connection, "SELECT name FROM Users")) == 2


def test_typed_rows(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT * FROM Users ORDER BY id", schema_type=User) as result:
        users = list(result)
    assert users[0] == User(id=1, name="John", email="john@test.com", age=30)
    assert all(isinstance(user, User) for user in users)


def test_typed_rows_with_params(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(
        sqlite_connection, "SELECT * FROM Users WHERE age > {{age}}", {"age": 35}, schema_type=User
    ) as result:
        assert [user.name for user in result] == ["Bob"]


@pytest.mark.parametrize("length", [50, 100, 128])
def test_long_parameter_names(sqlite_connection: sqlite3.Connection, length: int) -> None:
    name = "p" * length
    with execute_query(sqlite_connection, f"SELECT name FROM Users WHERE age = {{{{{name}}}}}", {name: 30}) as result:
        assert [row.name for row in result] == ["John"]
        assert result.statement is not None
        assert result.statement.parameters[0].key == "vxv_1_p1"


def test_multiple_long_parameter_names(sqlite_connection: sqlite3.Connection) -> None:
    low = "minimum_age_of_the_user_for_this_report_filter"
    high = "maximum_age_of_the_user_for_this_report_filter"
    query = f"SELECT name FROM Users WHERE age >= {{{{{low}}}}} AND age <= {{{{{high}}}}} ORDER BY name"
    assert names(sqlite_connection, query, {low: 26, high: 40}) == ["Bob", "John"]


def test_parameter_name_limit(sqlite_connection: sqlite3.Connection) -> None:
    config = FillConfig(max_parameter_name_length=10)
    for name, key in (("abcdefghij", "vxv_1_abcdefghij"), ("abcdefghijk", "vxv_1_p1")):
        with execute_query(sqlite_connection, f"SELECT {{{{{name}}}}} AS v", {name: 1}, config=config) as result:
            assert result.first() == {"v": 1}
            assert result.statement is not None
            assert result.statement.parameters[0].key == key


def test_long_parameter_name_in_command(sqlite_connection: sqlite3.Connection) -> None:
    name = "the_name_of_the_new_user_being_inserted_here"
    execute_command(sqlite_connection, f"INSERT INTO Users (name) VALUES ({{{{{name}}}}})", {name: "Long"})
    assert names(sqlite_connection, "SELECT name FROM Users WHERE name = 'Long'") == ["Long"]


def test_null_parameter_value(sqlite_connection: sqlite3.Connection) -> None:
    assert names(sqlite_connection, "SELECT name FROM Users WHERE email = {{email}}", {"email": None}) == []
    assert len(names(sqlite_connection, "SELECT name FROM Users WHERE {{email}} IS NULL", {"email": None})) == 3


def test_placeholders_without_params_bind_null(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT {{missing}} IS NULL AS unresolved") as result:
        assert result.first() == {"unresolved": 1}


def test_square_bracket_delimiters(sqlite_connection: sqlite3.Connection) -> None:
    query = "SELECT name FROM Users WHERE name = [[name]]"
    assert names(sqlite_connection, query, {"name": "Bob"}, pattern=SQUARE) == ["Bob"]


def test_pipe_delimiters(sqlite_connection: sqlite3.Connection) -> None:
    pattern = MarkerPattern.delimited("|", "|")
    query = "SELECT name FROM Users WHERE name = |name|"
    assert names(sqlite_connection, query, {"name": "Jane"}, pattern=pattern) == ["Jane"]


def test_multiple_sources_with_different_delimiters(sqlite_connection: sqlite3.Connection) -> None:
    sources = [ParameterSource({"minAge": 25}), ParameterSource({"maxAge": 35}, SQUARE)]
    query = "SELECT name FROM Users WHERE age >= {{minAge}} AND age <= [[maxAge]] ORDER BY name"
    assert names(sqlite_connection, query, sources) == ["Jane", "John"]


def test_default_markers_bind_null_when_only_other_patterns_given(
    sqlite_connection: sqlite3.Connection,
) -> None:
    sources = [ParameterSource({"b": 2}, SQUARE)]
    with execute_query(sqlite_connection, "SELECT {{a}} AS a, [[b]] AS b", sources) as result:
        assert result.first() == {"a": None, "b": 2}
        assert result.statement is not None
        assert "{{" not in result.statement.sql
        assert [parameter.key for parameter in result.statement.parameters] == ["vxv_1_b", "vxv_2_a"]


def test_bare_model_with_other_pattern_binds_default_markers(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT {{a}} AS a, [[b]] AS b", {"b": 2}, pattern=SQUARE) as result:
        assert result.first() == {"a": None, "b": 2}


def test_later_source_wins(sqlite_connection: sqlite3.Connection) -> None:
    sources = [ParameterSource({"name": "John"}), ParameterSource({"name": "Bob"})]
    assert names(sqlite_connection, "SELECT name FROM Users WHERE name = {{name}}", sources) == ["Bob"]


@pytest.mark.parametrize("placeholder", ["user.name", "user name", "user-name"])
def test_parameter_names_with_special_characters(sqlite_connection: sqlite3.Connection, placeholder: str) -> None:
    query = f"SELECT name FROM Users WHERE name = {{{{{placeholder}}}}}"
    assert names(sqlite_connection, query, {placeholder: "Jane"}) == ["Jane"]


@pytest.mark.parametrize(
    ("name", "email"), [("O'Brien", "o'brien@test.com"), ("München", "user@münchen.de"), ("名前", "x@example.jp")]
)
def test_special_and_unicode_values(sqlite_connection: sqlite3.Connection, name: str, email: str) -> None:
    execute_command(
        sqlite_connection,
        "INSERT INTO Users (name, email, age) VALUES ({{name}}, {{email}}, {{age}})",
        {"name": name, "email": email, "age": 35},
    )
    assert names(sqlite_connection, "SELECT name FROM Users WHERE name = {{name}}", {"name": name}) == [name]


def test_dispose_allows_new_query(sqlite_connection: sqlite3.Connection) -> None:
    first = execute_query(sqlite_connection, "SELECT * FROM Users")
    assert first.first() is not None
    first.dispose()
    with execute_query(sqlite_connection, "SELECT * FROM Orders") as second:
        assert len(second.all()) == 3


def test_select_literal(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT 'hello' AS greeting, 42 AS number") as result:
        row = result.first()
    assert row is not None
    assert (row.greeting, row.number) == ("hello", 42)


def test_count_column(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT COUNT(*) FROM Users") as result:
        assert result.first() == {"COUNT(*)": 3}


def test_unnamed_single_column_yields_scalar(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, 'SELECT age AS "" FROM Users ORDER BY age') as result:
        assert list(result) == [25, 30, 40]


def test_duplicate_column_names_keep_first(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT 1 AS v, 2 AS v") as result:
        assert result.first() == {"v": 1}


@pytest.mark.parametrize("query", [None, "", "   "])
def test_missing_query_is_rejected(sqlite_connection: sqlite3.Connection, query: Optional[str]) -> None:
    with pytest.raises(ImproperUsageError):
        execute_query(sqlite_connection, query)


def test_missing_connection_is_rejected() -> None:
    with pytest.raises(ImproperUsageError):
        execute_query(None, "SELECT 1")


def test_sql_error_carries_diagnostics(sqlite_connection: sqlite3.Connection) -> None:
    with pytest.raises(QueryExecutionError) as exc_info:
        execute_query(sqlite_connection, "SELECT * FROM Nope WHERE id = {{id}}", {"id": 7})
    error = exc_info.value
    assert isinstance(error.__cause__, sqlite3.OperationalError)
    assert "Parameters:\n@vxv_1_id = 7" in str(error)
    assert "SELECT * FROM Nope WHERE id = @vxv_1_id" in str(error)


def test_json_type_hint(sqlite_connection: sqlite3.Connection) -> None:
    query = """SELECT '{"address": {"city": "Oslo"}, "tags": ["a"]}' AS {type{json{profile}}}"""
    with execute_query(sqlite_connection, query) as result:
        row = result.first()
    assert row is not None
    assert row.profile.address.city == "Oslo"
    assert row.profile.tags == ["a"]


def test_json_array_type_hint(sqlite_connection: sqlite3.Connection) -> None:
    query = """SELECT '[{"type":"Mobile","number":"555"}]' AS {type{json{phones}}}"""
    with execute_query(sqlite_connection, query) as result:
        row = result.first()
    assert row is not None
    assert isinstance(row.phones, list)
    assert len(row.phones) == 1
    assert isinstance(row.phones[0], Record)
    assert (row.phones[0].type, row.phones[0].number) == ("Mobile", "555")


def test_xml_type_hint(sqlite_connection: sqlite3.Connection) -> None:
    query = "SELECT '<items><item>a</item><item>b</item></items>' AS {type{xml{items}}}"
    with execute_query(sqlite_connection, query) as result:
        assert result.first() == {"items": ["a", "b"]}


def test_invalid_hinted_value_raises(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT 'not json' AS {type{json{data}}}") as result, pytest.raises(
        TypeHintParseError
    ):
        list(result)


def test_hint_parse_error_carries_statement(sqlite_connection: sqlite3.Connection) -> None:
    query = "SELECT {{payload}} AS {type{json{data}}}"
    with execute_query(sqlite_connection, query, {"payload": "{broken"}) as result:
        with pytest.raises(TypeHintParseError) as exc_info:
            result.first()
    error = exc_info.value
    assert error.column == "data"
    assert error.sql == "SELECT @vxv_1_payload AS data"
    assert error.parameters == {"@vxv_1_payload": "{broken"}
    assert "Parameters:\n@vxv_1_payload = '{broken'" in str(error)


def test_hinted_null_stays_null(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT NULL AS {type{json{data}}}") as result:
        assert result.first() == {"data": None}


def test_cancellation_between_rows(sqlite_connection: sqlite3.Connection) -> None:
    token = CancellationToken()
    result = execute_query(sqlite_connection, "SELECT * FROM Users", cancellation=token)
    rows = iter(result)
    next(rows)
    token.cancel()
    with pytest.raises(QueryCancelledError):
        next(rows)
    assert result.disposed


def test_cancelled_before_execution(sqlite_connection: sqlite3.Connection) -> None:
    token = CancellationToken()
    token.cancel()
    with pytest.raises(QueryCancelledError):
        execute_query(sqlite_connection, "SELECT * FROM Users", cancellation=token)


def test_url_connection_is_owned_and_closed() -> None:
    with execute_query("sqlite:///:memory:", "SELECT {{x}} AS x", {"x": 5}) as result:
        assert result.owns_connection
        assert result.all() == [{"x": 5}]
        handle = result._connection
    assert handle is not None
    assert handle.state is ConnectionState.CLOSED


def test_close_connection_on_caller_connection(sqlite_connection: sqlite3.Connection) -> None:
    with execute_query(sqlite_connection, "SELECT 1 AS one", close_connection=True) as result:
        assert result.all() == [{"one": 1}]
    with pytest.raises(sqlite3.ProgrammingError):
        sqlite_connection.execute("SELECT 1")


def test_handle_opened_on_demand() -> None:
    handle = SqliteConnectionHandle(database=":memory:")
    assert handle.state is ConnectionState.CLOSED
    with execute_query(handle, "SELECT 1 AS one") as result:
        assert result.all() == [{"one": 1}]
    assert handle.state is ConnectionState.OPEN
    handle.close()
