"""
test_engine.py — End-to-end transformation tests.

Workbooks are written to disk with openpyxl and imported through
excel(...).build().operations(), then executed into an in-memory sqlite3
database shaped like the seeded tables.
"""
from __future__ import annotations

import sqlite3
from datetime import datetime
from tempfile import TemporaryDirectory

import pytest
from openpyxl import Workbook

from sheetseed import excel, sequence
from sheetseed.builder import ImportPlan
from sheetseed.engine import build_operations
from sheetseed.errors import (
    AppError,
    CELL_ERROR, FORMULA_NOT_CACHED, HEADER_CELL_BLANK, HEADER_CELL_NOT_STRING,
    HEADER_ROW_NOT_FOUND, UNRESOLVED_TABLE_NAME,
)
from sheetseed.models import Margin

from xlsx_helpers import (
    TABLE_1_HEADER, make_workbook, save_workbook, table_1_grid, table_2_grid,
)


SCHEMA = [
    "create table table_1 (a integer primary key, b bigint, c decimal(7, 3), d date, e timestamp,"
    " f char(3), g varchar(6), h boolean, i varchar(6))",
    "create table table_2 (a integer primary key, b varchar(6))",
]


@pytest.fixture
def db():
    conn = sqlite3.connect(":memory:")
    for stmt in SCHEMA:
        conn.execute(stmt)
    yield conn
    conn.close()


@pytest.fixture
def tmpdir_path():
    with TemporaryDirectory() as td:
        yield td


def _table_1(db):
    return db.execute("select a, b, c, d, e, f, g, h, i from table_1 order by a").fetchall()


def _table_2(db):
    return db.execute("select a, b from table_2 order by a").fetchall()


def _validate_single_sheet(db):
    assert _table_1(db) == [
        (100, 10000000000, 0.5, "2019-12-01 00:00:00", "2019-12-01 09:30:01", "AAA", "甲", 1, "x"),
        (200, 20000000000, 0.25, "2019-12-02 00:00:00", "2019-12-02 09:30:02", "BBB", "乙", 0, None),
    ]


def _validate_multiple_sheet(db):
    _validate_single_sheet(db)
    assert _table_2(db) == [(101, "AAA"), (201, "BBB"), (301, "CCC")]


# ══════════════════════════════════════════════════════════════════════════════
# IMPORTS
# ══════════════════════════════════════════════════════════════════════════════

def test_import_single_sheet(tmpdir_path, db):
    path = save_workbook(make_workbook({"table_1": table_1_grid()}), tmpdir_path)
    ops = excel(path).build().operations()
    assert len(ops) == 1
    assert ops[0].columns == tuple(TABLE_1_HEADER)
    assert ops[0].rows[0][3] == datetime(2019, 12, 1)
    ops.execute(db)
    _validate_single_sheet(db)


def test_import_multiple_sheet(tmpdir_path, db):
    path = save_workbook(make_workbook({"table_1": table_1_grid(), "table_2": table_2_grid()}), tmpdir_path)
    plan = excel(path).build()
    assert plan.execute(db) == 5
    _validate_multiple_sheet(db)


def test_use_exclude(tmpdir_path, db):
    wb = make_workbook({"table_1": table_1_grid(), "table_2x": table_2_grid()})
    path = save_workbook(wb, tmpdir_path)
    ops = excel(path).exclude(".+x$").build().operations()
    assert ops.tables == ["table_1"]
    ops.execute(db)
    _validate_single_sheet(db)


def test_use_include(tmpdir_path):
    names = ["table_11", "table_12", "table_21", "table_22"]
    path = save_workbook(make_workbook({n: [["a"], [1]] for n in names}), tmpdir_path)
    ops = excel(path).include(".+2$").build().operations()
    assert ops.tables == ["table_12", "table_22"]


def test_hidden_sheets_never_imported(tmpdir_path):
    wb = make_workbook(
        {"table_1": table_1_grid(), "hidden": [["a"]], "very_hidden": [["a"]]},
        hidden={"hidden": "hidden", "very_hidden": "veryHidden"},
    )
    path = save_workbook(wb, tmpdir_path)
    ops = excel(path).include(".*").build().operations()
    assert ops.tables == ["table_1"]


def test_no_selected_sheet_gives_empty_sequence(tmpdir_path, db):
    path = save_workbook(make_workbook({"table_1": table_1_grid()}), tmpdir_path)
    ops = excel(path).include("nothing").build().operations()
    assert len(ops) == 0
    assert ops.execute(db) == 0


def test_use_generators(tmpdir_path, db):
    t1 = [row[1:] for row in table_1_grid()]
    t2 = [row[1:] for row in table_2_grid()]
    path = save_workbook(make_workbook({"table_1": t1, "table_2": t2}), tmpdir_path)
    plan = (
        excel(path)
        .with_generated_value("table_1", "a", sequence(100, 100))
        .with_generated_value("table_2", "a", sequence(101, 100))
        .build()
    )
    plan.execute(db)
    _validate_multiple_sheet(db)


def test_use_constants(tmpdir_path, db):
    t1 = [[v for k, v in zip(TABLE_1_HEADER, row) if k not in ("g", "i")] for row in table_1_grid()]
    t2 = [row[:1] for row in table_2_grid()]
    path = save_workbook(make_workbook({"table_1": t1, "table_2": t2}), tmpdir_path)
    ops = (
        excel(path)
        .with_default_value("table_1", "g", "G")
        .with_default_value("table_1", "i", None)
        .with_default_value("table_2", "b", "B")
        .build()
        .operations()
    )
    assert ops[0].columns == ("a", "b", "c", "d", "e", "f", "h")
    assert all(len(r) == 7 for r in ops[0].rows)
    assert dict(ops[0].default_values) == {"g": "G", "i": None}
    ops.execute(db)
    assert db.execute("select g, i from table_1").fetchall() == [("G", None), ("G", None)]
    assert db.execute("select b from table_2").fetchall() == [("B",), ("B",), ("B",)]


def test_import_sheet_that_has_margin(tmpdir_path, db):
    wb = make_workbook({"table_1": table_1_grid()}, top=2, left=1)
    path = save_workbook(wb, tmpdir_path)
    ops = excel(path).top(2).left(1).build().operations()
    ops.execute(db)
    _validate_single_sheet(db)


def test_margin_two_rows_of_two(tmpdir_path):
    wb = make_workbook({"t": [["a", "b"], [1, 2], [3, 4]]}, top=2, left=1)
    path = save_workbook(wb, tmpdir_path)
    op = excel(path).margin(1, 2).build().operations()[0]
    assert op.columns == ("a", "b")
    assert op.rows == ((1.0, 2.0), (3.0, 4.0))


def test_skip_after_header(tmpdir_path):
    wb = make_workbook({"t": [["a", "b"], ["int", "text"], [1, "x"]]})
    path = save_workbook(wb, tmpdir_path)
    op = excel(path).skip_after_header(1).build().operations()[0]
    assert op.rows == ((1.0, "x"),)


def test_resolver_maps_sheet_names(tmpdir_path, db):
    path = save_workbook(make_workbook({"Second": table_2_grid()}), tmpdir_path)
    excel(path).resolver({"Second": "table_2"}).build().execute(db)
    assert len(_table_2(db)) == 3


def test_formula_cells_go_through_evaluator():
    wb = make_workbook({"t": [["a", "b"], [2, "=A2*2"]]})

    class Doubler:
        def evaluate(self, cell):
            result = Workbook().active
            result["A1"] = 4
            return result["A1"]

    plan = ImportPlan(location="in-memory")
    ops = build_operations(wb, plan, Doubler())
    assert ops[0].rows == ((2.0, 4.0),)


def test_uncached_formula_from_file_fails_with_address(tmpdir_path):
    path = save_workbook(make_workbook({"t": [["a", "b"], [2, "=A2*2"]]}), tmpdir_path)
    with pytest.raises(AppError) as ei:
        excel(path).build().operations()
    assert ei.value.code == FORMULA_NOT_CACHED
    assert ei.value.message == "formula result not cached: t!B2"


def test_idempotent_transformation(tmpdir_path):
    wb = make_workbook({"table_1": table_1_grid(), "table_2": table_2_grid()})
    path = save_workbook(wb, tmpdir_path)
    plan = excel(path).with_default_value("table_2", "c", "C").build()
    assert plan.operations() == plan.operations()


# ══════════════════════════════════════════════════════════════════════════════
# FAILURES
# ══════════════════════════════════════════════════════════════════════════════

def _fails(path, code, **settings):
    b = excel(path)
    for name, value in settings.items():
        getattr(b, name)(value)
    with pytest.raises(AppError) as ei:
        b.build().operations()
    assert ei.value.code == code
    return ei.value


def test_import_sheet_that_contains_error(tmpdir_path):
    t2 = table_2_grid()
    t2[3][1] = "#DIV/0!"
    path = save_workbook(make_workbook({"table_1": table_1_grid(), "table_2": t2}), tmpdir_path)
    err = _fails(path, CELL_ERROR)
    assert err.message == "error value contained: table_2!B4"


def test_import_sheet_that_contains_empty_sheet(tmpdir_path):
    wb = make_workbook({"table_1": table_1_grid(), "empty_sheet": []})
    path = save_workbook(wb, tmpdir_path)
    err = _fails(path, HEADER_ROW_NOT_FOUND)
    assert err.message == "header row not found: empty_sheet[0]"


def test_header_row_not_found_at_margin(tmpdir_path):
    path = save_workbook(make_workbook({"table_1": table_1_grid()}), tmpdir_path)
    err = _fails(path, HEADER_ROW_NOT_FOUND, top=10)
    assert err.details == {"sheet": "table_1", "row": 10}


def test_header_width_zero_at_left_margin(tmpdir_path):
    path = save_workbook(make_workbook({"table_1": table_1_grid()}), tmpdir_path)
    _fails(path, HEADER_ROW_NOT_FOUND, left=9)


def test_blank_and_numeric_header_cells(tmpdir_path):
    path = save_workbook(make_workbook({"t": [["a", None, "c"], [1, 2, 3]]}), tmpdir_path, "blank.xlsx")
    assert _fails(path, HEADER_CELL_BLANK).details == {"address": "t!B1"}
    path = save_workbook(make_workbook({"t": [["a", 5]]}), tmpdir_path, "numeric.xlsx")
    assert _fails(path, HEADER_CELL_NOT_STRING).details == {"address": "t!B1"}


def test_unresolved_table_fails_whole_import(tmpdir_path):
    wb = make_workbook({"table_1": table_1_grid(), "table_2": table_2_grid()})
    path = save_workbook(wb, tmpdir_path)
    b = excel(path).resolver(lambda name: "table_1" if name == "table_1" else None)
    with pytest.raises(AppError) as ei:
        b.build().operations()
    assert ei.value.code == UNRESOLVED_TABLE_NAME
    assert ei.value.details == {"sheet": "table_2"}


def test_unresolved_table_reported_before_header_and_cell_defects(tmpdir_path):
    wb = make_workbook({"orphan": [["a", 5], [1, "#N/A"]]})
    path = save_workbook(wb, tmpdir_path)
    with pytest.raises(AppError) as ei:
        excel(path).resolver(lambda name: None).build().operations()
    assert ei.value.code == UNRESOLVED_TABLE_NAME
    assert ei.value.details == {"sheet": "orphan"}


def test_missing_header_row_reported_before_unresolved_table(tmpdir_path):
    path = save_workbook(make_workbook({"orphan": []}), tmpdir_path)
    with pytest.raises(AppError) as ei:
        excel(path).resolver(lambda name: None).build().operations()
    assert ei.value.code == HEADER_ROW_NOT_FOUND


def test_excluded_bad_sheet_does_not_fail(tmpdir_path):
    wb = make_workbook({"table_1": table_1_grid(), "notes": []})
    path = save_workbook(wb, tmpdir_path)
    ops = excel(path).exclude("notes").build().operations()
    assert ops.tables == ["table_1"]


def test_margin_is_validated_on_plan_model():
    with pytest.raises(AppError):
        ImportPlan(location="x", margin=Margin(top=-1))
