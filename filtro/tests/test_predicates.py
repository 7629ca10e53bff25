from datetime import date, datetime

import pytest

from filtro import FilterCondition, ValidationError
from filtro.models.predicates import CONDITION_REGISTRY, check_conditions, evaluate, match_cell


def _c(condition, value="", value2=None, column="x"):
    return FilterCondition(column, condition, value, value2)


# ---------- numeric family ----------
def test_greater_than_scenario():
    """'150' > '100' passes; 'abc' cannot be compared and fails."""
    cond = FilterCondition("amt", "greaterThan", "100")
    assert evaluate({"amt": "150"}, cond) is True
    assert evaluate({"amt": "abc"}, cond) is False


@pytest.mark.parametrize(
    "condition, cell, value, expected",
    [
        ("equals", "10", "10.0", True),
        ("equals", 10, "10", True),
        ("equals", "abc", "10", False),
        ("lessThan", "9", "10", True),
        ("greaterThanOrEqual", "10", "10", True),
        ("lessThanOrEqual", "10.5", "10", False),
        ("greaterThan", "150 USD", "100", True),
        ("greaterThan", None, "100", False),
        ("greaterThan", "150", "", False),
    ],
)
def test_numeric_conditions(condition, cell, value, expected):
    """Numeric conditions parse both sides; unparseable operands fail."""
    assert match_cell(cell, _c(condition, value)) is expected


def test_not_equals_is_true_for_unparseable_operands():
    """notEquals treats an unparseable side as 'not equal'."""
    assert match_cell("abc", _c("notEquals", "10")) is True
    assert match_cell("10", _c("notEquals", "abc")) is True
    assert match_cell(None, _c("notEquals", "10")) is True
    assert match_cell("10", _c("notEquals", "10")) is False
    assert match_cell("11", _c("notEquals", "10")) is True


def test_between_is_inclusive_and_needs_all_three():
    """between includes both bounds and fails when any side is unparseable."""
    assert match_cell("10", _c("between", "10", "20")) is True
    assert match_cell("20", _c("between", "10", "20")) is True
    assert match_cell("21", _c("between", "10", "20")) is False
    assert match_cell("15", _c("between", "10", None)) is False
    assert match_cell("x", _c("between", "10", "20")) is False


def test_booleans_are_not_numbers():
    """A boolean cell never satisfies a numeric comparison."""
    assert match_cell(True, _c("equals", "1")) is False


# ---------- text family ----------
def test_text_conditions_are_case_insensitive():
    """contains/startsWith/endsWith/doesNotContain ignore case."""
    assert match_cell("Hello World", _c("contains", "WORLD")) is True
    assert match_cell("Hello World", _c("startsWith", "hello")) is True
    assert match_cell("Hello World", _c("endsWith", "World")) is True
    assert match_cell("Hello World", _c("doesNotContain", "WORLD")) is False
    assert match_cell("Hello World", _c("doesNotContain", "moon")) is True


def test_exact_match_is_case_sensitive():
    """exactMatch compares the exact string form."""
    assert match_cell("Bob", _c("exactMatch", "Bob")) is True
    assert match_cell("Bob", _c("exactMatch", "bob")) is False


def test_text_conditions_coerce_cells():
    """None reads as '', integral floats drop their '.0'."""
    assert match_cell(None, _c("contains", "")) is True
    assert match_cell(None, _c("exactMatch", "")) is True
    assert match_cell(150.0, _c("exactMatch", "150")) is True
    assert match_cell(12, _c("startsWith", "1")) is True


# ---------- date family ----------
def test_date_before_after():
    """before/after compare parsed dates."""
    assert match_cell("2024-01-01", _c("before", "2024-02-01")) is True
    assert match_cell("2024-03-01", _c("after", "02/01/2024")) is True
    assert match_cell("2024-03-01", _c("before", "2024-02-01")) is False


def test_date_on_ignores_time_of_day():
    """on compares calendar dates only."""
    assert match_cell("2024-01-05 17:45", _c("on", "2024-01-05")) is True
    assert match_cell(datetime(2024, 1, 5, 9, 0), _c("on", "2024-01-05")) is True
    assert match_cell(date(2024, 1, 6), _c("on", "2024-01-05")) is False


def test_between_dates_inclusive():
    """betweenDates includes both bounds."""
    cond = _c("betweenDates", "2024-01-01", "2024-01-31")
    assert match_cell("2024-01-01", cond) is True
    assert match_cell("2024-01-31", cond) is True
    assert match_cell("2024-02-01", cond) is False


def test_unparseable_dates_fail_closed():
    """Any side that is not a date makes the predicate false."""
    assert match_cell("not a date", _c("before", "2024-01-01")) is False
    assert match_cell("2024-01-01", _c("after", "soon")) is False
    assert match_cell(None, _c("on", "2024-01-01")) is False
    assert match_cell("2024-01-10", _c("betweenDates", "2024-01-01", None)) is False
    # parseable offsets that cannot be converted to UTC
    assert match_cell("2024-01-01T00:00+99:00", _c("after", "2023-01-01")) is False
    assert match_cell("0001-01-01T00:00+05:00", _c("before", "2024-01-01")) is False


# ---------- emptiness ----------
@pytest.mark.parametrize("cell", [None, "", "   ", "\t"])
def test_is_empty(cell):
    """None, '' and whitespace-only cells are empty."""
    assert evaluate({"note": cell}, FilterCondition("note", "isEmpty")) is True
    assert evaluate({"note": cell}, FilterCondition("note", "isNotEmpty")) is False


def test_is_not_empty():
    """A cell with content is not empty; zero counts as content."""
    assert evaluate({"note": "x"}, FilterCondition("note", "isNotEmpty")) is True
    assert evaluate({"note": 0}, FilterCondition("note", "isEmpty")) is False


# ---------- unknown / missing ----------
def test_unknown_condition_passes_through():
    """An unknown condition name matches every row."""
    assert evaluate({"x": "anything"}, _c("fuzzyMatch", "y")) is True


def test_missing_column_reads_as_none():
    """A row without the column behaves as a None cell."""
    assert evaluate({}, _c("isEmpty")) is True
    assert evaluate({}, _c("greaterThan", "1")) is False


def test_registry_covers_every_family():
    """All eighteen documented conditions are registered with their family."""
    assert len(CONDITION_REGISTRY) == 18
    assert CONDITION_REGISTRY["between"].family == "number"
    assert CONDITION_REGISTRY["exactMatch"].family == "text"
    assert CONDITION_REGISTRY["on"].family == "date"
    assert CONDITION_REGISTRY["isEmpty"].family == "empty"


# ---------- strict checks ----------
def test_check_conditions_strict_unknown_condition():
    """Strict mode rejects unknown condition names with a suggestion."""
    with pytest.raises(ValidationError) as ex:
        check_conditions([_c("greaterThen", "1")], ["x"], strict=True)
    assert getattr(ex.value, "code", None) == "E_FILTER_UNKNOWN_CONDITION"
    assert "greaterThan" in (ex.value.hint or "")


def test_check_conditions_strict_unknown_column_and_value2():
    """Strict mode rejects unknown columns and open ranges."""
    with pytest.raises(ValidationError) as ex:
        check_conditions([_c("equals", "1", column="amout")], ["amount"], strict=True)
    assert getattr(ex.value, "code", None) == "E_FILTER_UNKNOWN_COL"

    with pytest.raises(ValidationError) as ex:
        check_conditions([_c("between", "1", column="amount")], ["amount"], strict=True)
    assert getattr(ex.value, "code", None) == "E_FILTER_VALUE2"


def test_check_conditions_lenient_by_default():
    """Without strict mode nothing is rejected."""
    check_conditions([_c("nope", column="missing")], ["x"])


# ---------- condition construction ----------
def test_condition_requires_column_and_name():
    """FilterCondition rejects empty column or condition."""
    with pytest.raises(ValidationError):
        FilterCondition("", "equals", "1")
    with pytest.raises(ValidationError):
        FilterCondition("a", "", "1")


def test_condition_values_are_text():
    """Operands are carried as text whatever type they arrive as."""
    c = FilterCondition.from_ir({"column": "a", "condition": "between", "value": 1, "value2": 2.5})
    assert c.value == "1" and c.value2 == "2.5"
    assert FilterCondition.from_ir(c.to_ir()) == c
