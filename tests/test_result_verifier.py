# ABOUTME: Tests result-set comparison and SQLite-backed submission verification.
# ABOUTME: Covers value normalization, ordering rules, mismatch messages, and query errors.

import sqlite3

import pytest

from src.common.schemas import QueryResult
from src.verification.comparison import CellKind, classify_cell, compare_results, normalize_value, verify_submission
from src.verification.execution import SqliteExecutionEngine, build_dataset

SEED_SCRIPT = """
CREATE TABLE nurses (nurse_id INTEGER PRIMARY KEY, name TEXT, shift TEXT);
CREATE TABLE medications (med_id INTEGER PRIMARY KEY, nurse_id INTEGER, delay_minutes REAL);
INSERT INTO nurses VALUES (1, 'Alvarez', 'day'), (2, 'Brooks', 'night'), (3, 'Chen', 'night');
INSERT INTO medications VALUES
    (1, 1, 5.0), (2, 1, 12.5), (3, 2, 40.0), (4, 2, 35.0), (5, 3, 20.0), (6, 3, NULL);
"""

SHIFT_REFERENCE = (
    "SELECT n.shift, AVG(m.delay_minutes) AS avg_delay FROM medications m "
    "JOIN nurses n ON m.nurse_id = n.nurse_id GROUP BY n.shift ORDER BY n.shift"
)


@pytest.fixture
def dataset():
    con = build_dataset(SEED_SCRIPT)
    yield con
    con.close()


def _result(columns, rows):
    return QueryResult(columns=tuple(columns), rows=tuple(tuple(r) for r in rows))


def test_normalize_value_rounds_half_away_from_zero():
    assert normalize_value(18) == "18"
    assert normalize_value(18.0) == "18"
    assert normalize_value(18.004999) == "18"
    assert normalize_value(18.005) == "18.01"
    assert normalize_value(18.005001) == "18.01"
    assert normalize_value(-18.005) == "-18.01"
    assert normalize_value(2.675) == "2.68"
    assert normalize_value(100) == "100"
    assert normalize_value(-0.001) == "0"


def test_normalize_value_handles_other_kinds():
    assert normalize_value(None) == "NULL"
    assert normalize_value(True) == "true"
    assert normalize_value(False) == "false"
    assert normalize_value("Cardiac B") == "Cardiac B"


def test_classify_cell_checks_booleans_before_numbers():
    assert classify_cell(True) is CellKind.BOOLEAN
    assert classify_cell(1) is CellKind.NUMBER
    assert classify_cell(1.5) is CellKind.NUMBER
    assert classify_cell(None) is CellKind.NULL
    assert classify_cell("x") is CellKind.TEXT


def test_column_order_does_not_matter():
    submitted = _result(["avg_delay", "shift"], [[8.75, "day"], [31.67, "night"]])
    reference = _result(["shift", "avg_delay"], [["day", 8.75], ["night", 31.666667]])
    result = compare_results(submitted, reference)
    assert result.is_match
    assert result.message == "Correct!"


def test_column_names_are_trimmed_and_case_insensitive():
    submitted = _result([" Name "], [["Alvarez"]])
    reference = _result(["name"], [["Alvarez"]])
    assert compare_results(submitted, reference).is_match


def test_row_order_ignored_by_default():
    submitted = _result(["shift"], [["night"], ["day"]])
    reference = _result(["shift"], [["day"], ["night"]])
    assert compare_results(submitted, reference).is_match


def test_row_order_enforced_when_requested():
    submitted = _result(["shift"], [["night"], ["day"]])
    reference = _result(["shift"], [["day"], ["night"]])
    result = compare_results(submitted, reference, order_matters=True)

    assert not result.is_match
    assert result.message == "Row 1 doesn't match. Check your ORDER BY clause."


def test_values_within_rounding_match():
    reference = _result(["v"], [[18.001]])
    assert compare_results(_result(["v"], [[18.004999]]), reference).is_match
    assert compare_results(_result(["v"], [[18.005001]]), _result(["v"], [[18.014]])).is_match


def test_values_across_the_rounding_boundary_differ():
    # 18.004999 rounds to 18 and 18.005001 rounds to 18.01.
    result = compare_results(_result(["v"], [[18.004999]]), _result(["v"], [[18.005001]]))
    assert not result.is_match
    assert result.message == "Results don't match. Check your query logic."


def test_integer_and_float_forms_are_equal():
    submitted = _result(["n"], [[18], [7.5]])
    reference = _result(["n"], [[18.0], [7.50]])
    assert compare_results(submitted, reference).is_match


def test_submitted_error_is_reported():
    submitted = QueryResult(error="no such table: nurse")
    result = compare_results(submitted, _result(["n"], [[1]]))
    assert not result.is_match
    assert result.message == "Query error: no such table: nurse"


def test_column_count_mismatch():
    result = compare_results(_result(["a"], [[1]]), _result(["a", "b"], [[1, 2]]))
    assert result.message == "Column count mismatch: got 1, expected 2"


def test_row_count_mismatch():
    result = compare_results(_result(["a"], [[1]]), _result(["a"], [[1], [2]]))
    assert result.message == "Row count mismatch: got 1, expected 2"


def test_column_name_mismatch_echoes_submitted_names():
    result = compare_results(_result(["Shift", "delay"], [["day", 1]]), _result(["shift", "avg_delay"], [["day", 1]]))
    assert not result.is_match
    assert result.message == "Column names don't match. Got: Shift, delay"


def test_two_empty_results_match():
    assert compare_results(_result(["a"], []), _result(["a"], [])).is_match


def test_null_only_matches_null():
    assert compare_results(_result(["a"], [[None]]), _result(["a"], [[None]])).is_match
    assert not compare_results(_result(["a"], [[None]]), _result(["a"], [[0]])).is_match


def test_verify_equivalent_queries(dataset):
    submitted = (
        "SELECT AVG(m.delay_minutes) AS AVG_DELAY, n.shift FROM nurses n "
        "INNER JOIN medications m USING (nurse_id) GROUP BY n.shift"
    )
    result = verify_submission(submitted, SHIFT_REFERENCE, dataset)
    assert result.is_match
    assert len(result.reference.rows) == 2


def test_verify_wrong_filter(dataset):
    submitted = (
        "SELECT n.shift, AVG(m.delay_minutes) AS avg_delay FROM medications m "
        "JOIN nurses n ON m.nurse_id = n.nurse_id WHERE m.delay_minutes > 10 GROUP BY n.shift"
    )
    result = verify_submission(submitted, SHIFT_REFERENCE, dataset)
    assert not result.is_match
    assert result.message == "Results don't match. Check your query logic."


def test_verify_order_sensitive(dataset):
    submitted = SHIFT_REFERENCE.replace("ORDER BY n.shift", "ORDER BY n.shift DESC")
    assert verify_submission(submitted, SHIFT_REFERENCE, dataset).is_match
    result = verify_submission(submitted, SHIFT_REFERENCE, dataset, order_matters=True)
    assert not result.is_match
    assert result.message.startswith("Row 1")


def test_verify_syntax_error_becomes_message(dataset):
    result = verify_submission("SELEC * FROM nurses", "SELECT * FROM nurses", dataset)
    assert not result.is_match
    assert result.message.startswith("Query error:")
    assert result.submitted.is_error


def test_engine_opens_database_file_read_only(tmp_path):
    db_path = tmp_path / "study.db"
    con = sqlite3.connect(db_path)
    con.executescript(SEED_SCRIPT)
    con.close()

    engine = SqliteExecutionEngine()
    rows = engine.execute("SELECT name FROM nurses ORDER BY nurse_id", db_path)
    assert rows.columns == ("name",)
    assert rows.rows == (("Alvarez",), ("Brooks",), ("Chen",))

    write = engine.execute("DELETE FROM nurses", db_path)
    assert write.is_error


def test_engine_reports_missing_database(tmp_path):
    result = SqliteExecutionEngine().execute("SELECT 1", tmp_path / "missing.db")
    assert result.is_error


def test_engine_returns_empty_result_for_statements_without_rows(dataset):
    result = SqliteExecutionEngine().execute("PRAGMA foreign_keys = ON", dataset)
    assert not result.is_error
    assert result.columns == ()
    assert result.rows == ()


def test_normalize_value_keeps_very_large_numbers():
    assert normalize_value(1e27) == "1" + "0" * 27
    assert normalize_value(10 ** 30) == "1" + "0" * 30
    assert normalize_value(-1e27) == "-1" + "0" * 27


def test_large_aggregate_results_compare_without_raising():
    big = _result(["total"], [[1e27]])
    assert compare_results(big, _result(["total"], [[1e27]])).is_match
    assert not compare_results(big, _result(["total"], [[2e27]])).is_match


@pytest.mark.parametrize(
    "statement",
    [
        "DELETE FROM nurses",
        "UPDATE nurses SET shift = 'day'",
        "DROP TABLE nurses",
        "INSERT INTO nurses VALUES (4, 'Diaz', 'day')",
    ],
)
def test_write_submissions_leave_dataset_untouched(dataset, statement):
    reference = "SELECT name, shift FROM nurses"

    result = verify_submission(statement, reference, dataset)
    assert not result.is_match
    assert result.message.startswith("Query error:")

    again = verify_submission(reference, reference, dataset)
    assert again.is_match
    assert again.reference.rows == (("Alvarez", "day"), ("Brooks", "night"), ("Chen", "night"))


def test_connection_stays_writable_for_its_owner(dataset):
    SqliteExecutionEngine().execute("SELECT 1", dataset)
    dataset.execute("INSERT INTO nurses VALUES (4, 'Diaz', 'day')")
    assert dataset.execute("SELECT COUNT(*) FROM nurses").fetchone()[0] == 4


def test_reference_error_is_reported_separately(dataset):
    result = verify_submission("SELECT name FROM nurses", "SELECT name FROM nurse", dataset)
    assert not result.is_match
    assert result.message == "Reference query failed: no such table: nurse"
