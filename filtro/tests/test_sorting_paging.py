import pytest

from filtro import RecordSet, ValidationError
from filtro.models.paging import page_records
from filtro.models.sorting import compare_cells, sort_records


def _rs(values, column="v"):
    return RecordSet((column, "i"), [(v, i) for i, v in enumerate(values)])


# ---------- sorting ----------
def test_sort_numeric_values_numerically():
    """Numeric-looking cells compare as numbers, not strings."""
    out = sort_records(_rs(["10", "9", 100, "2.5"]), "v")
    assert out.column("v") == ["2.5", "9", "10", 100]


def test_sort_text_case_insensitively_and_descending():
    """Text compares case-insensitively; desc reverses."""
    rs = _rs(["banana", "Apple", "cherry"])
    assert sort_records(rs, "v").column("v") == ["Apple", "banana", "cherry"]
    assert sort_records(rs, "v", "desc").column("v") == ["cherry", "banana", "Apple"]


def test_sort_none_reads_as_empty_string():
    """None sorts like '' (before any text)."""
    out = sort_records(_rs(["b", None, "a"]), "v")
    assert out.column("v") == [None, "a", "b"]


def test_sort_without_column_is_identity():
    """No column: the record set comes back unchanged."""
    rs = _rs(["b", "a"])
    assert sort_records(rs) is rs


def test_sort_reorders_rows_not_columns():
    """Whole rows move together and the header is untouched."""
    rs = _rs(["b", "a"])
    out = sort_records(rs, "v")
    assert out.header == rs.header
    assert out.rows == [("a", 1), ("b", 0)]


def test_sort_validation():
    """Unknown column and direction are rejected."""
    with pytest.raises(ValidationError) as ex:
        sort_records(_rs(["a"]), "nope")
    assert getattr(ex.value, "code", None) == "E_SORT_UNKNOWN_COL"
    with pytest.raises(ValidationError) as ex:
        sort_records(_rs(["a"]), "v", "sideways")
    assert getattr(ex.value, "code", None) == "E_SORT_DIRECTION"


def test_compare_cells_mixed():
    """Numbers only compare numerically when both sides parse."""
    assert compare_cells("2", "10") < 0
    assert compare_cells("2", "abc") < 0
    assert compare_cells("B", "a") > 0
    assert compare_cells(None, "") == 0


# ---------- paging ----------
def test_pagination_last_page():
    """205 rows at 50 per page: 5 pages, the last has 5 rows and no more pages."""
    rs = RecordSet(("n",), [(i,) for i in range(205)])
    pg = page_records(rs, 5, 50)
    assert pg.total_pages == 5
    assert len(pg.records) == 5
    assert pg.records.rows[0] == (200,)
    assert pg.has_more is False
    assert pg.total_rows == 205


def test_pagination_first_page_and_past_the_end():
    """Early pages report more to come; pages past the end are empty."""
    rs = RecordSet(("n",), [(i,) for i in range(205)])
    first = page_records(rs, 1, 50)
    assert first.records.rows[-1] == (49,)
    assert first.has_more is True
    assert first.meta() == {"currentPage": 1, "totalPages": 5, "hasMore": True}
    assert len(page_records(rs, 9, 50).records) == 0


def test_pagination_of_empty_set():
    """An empty record set has zero pages."""
    pg = page_records(RecordSet(("n",), []), 1, 10)
    assert pg.total_pages == 0 and pg.has_more is False


@pytest.mark.parametrize("page, size", [(0, 10), (1, 0), (-1, 5), (1, "10")])
def test_pagination_rejects_bad_params(page, size):
    """Page and page size must be positive integers."""
    with pytest.raises(ValidationError) as ex:
        page_records(RecordSet(("n",), [(1,)]), page, size)
    assert getattr(ex.value, "code", None) == "E_PAGE_PARAMS"
