from http import HTTPStatus

import pytest

from bookapi.errors import AppError
from bookapi.query import (
    PAGINATION_MAX_LIMIT,
    PaginateResponse,
    PaginateSort,
    PaginateSortQuery,
    Sort,
)


def test_from_paginate_sort_query_paginate():
    assert PaginateSort.from_query(PaginateSortQuery()) == PaginateSort(
        1, PAGINATION_MAX_LIMIT, 0, []
    )
    assert PaginateSort.from_query(PaginateSortQuery(limit=600)) == PaginateSort(
        1, PAGINATION_MAX_LIMIT, 0, []
    )
    assert PaginateSort.from_query(PaginateSortQuery(page=0)) == PaginateSort(
        1, PAGINATION_MAX_LIMIT, 0, []
    )
    assert PaginateSort.from_query(PaginateSortQuery(page=2, limit=100)) == PaginateSort(
        2, 100, 100, []
    )


def test_from_paginate_sort_query_sort():
    assert PaginateSort.from_query(PaginateSortQuery()) == PaginateSort(
        1, PAGINATION_MAX_LIMIT, 0, []
    )
    assert PaginateSort.from_query(
        PaginateSortQuery(sort="+id,-created_at")
    ) == PaginateSort(
        1, PAGINATION_MAX_LIMIT, 0, [("id", Sort.ASC), ("created_at", Sort.DESC)]
    )
    assert PaginateSort.from_query(PaginateSortQuery(sort="created_at")) == PaginateSort(
        1, PAGINATION_MAX_LIMIT, 0, []
    )


def test_get_pagination_sql():
    assert PaginateSort(1, 50, 0, []).pagination_sql() == " LIMIT 50 OFFSET 0"


def test_get_sorts_sql_without_sort():
    assert PaginateSort(1, 50, 0, []).sorts_sql(None) == ""


def test_get_sorts_sql_without_valid_fields():
    paginate_sort = PaginateSort(1, 50, 0, [])
    assert paginate_sort.sorts_sql([]) == ""
    paginate_sort.sorts = [("id", Sort.ASC), ("name", Sort.DESC)]
    assert paginate_sort.sorts_sql([]) == ""
    assert paginate_sort.sorts_sql(None) == " ORDER BY id ASC, name DESC"


def test_get_sorts_sql_with_valid_fields():
    paginate_sort = PaginateSort(1, 50, 0, [])
    assert paginate_sort.sorts_sql(["id", "name"]) == ""

    paginate_sort.sorts = [("id", Sort.ASC), ("name", Sort.DESC)]
    assert paginate_sort.sorts_sql(["id", "name"]) == " ORDER BY id ASC, name DESC"
    assert paginate_sort.sorts_sql(["name"]) == " ORDER BY name DESC"

    paginate_sort.sorts = [("idz", Sort.ASC), ("name", Sort.DESC)]
    assert paginate_sort.sorts_sql(["id", "name"]) == " ORDER BY name DESC"

    paginate_sort.sorts = [("id", Sort.ASC), ("namee", Sort.DESC)]
    assert paginate_sort.sorts_sql(["id", "name"]) == " ORDER BY id ASC"

    paginate_sort.sorts = [("idz", Sort.ASC), ("namee", Sort.DESC)]
    assert paginate_sort.sorts_sql(["id", "name"]) == ""


def test_get_sorts_sql_with_valid_fields_and_table_prefix():
    paginate_sort = PaginateSort(
        1, 50, 0, [("book.id", Sort.ASC), ("role.name", Sort.DESC)]
    )
    assert (
        paginate_sort.sorts_sql(["book.id", "role.name"])
        == " ORDER BY book.id ASC, role.name DESC"
    )


@pytest.mark.parametrize("sort, text", [(Sort.ASC, "ASC"), (Sort.DESC, "DESC")])
def test_sort_display(sort, text):
    assert PaginateSort(1, 50, 0, [("id", sort)]).sorts_sql(None) == f" ORDER BY id {text}"
    assert str(sort) == text


def test_offset_is_page_minus_one_times_limit():
    for page in range(1, 6):
        for limit in (1, 7, 500):
            result = PaginateSort.from_query(PaginateSortQuery(page=page, limit=limit))
            assert result.offset == (page - 1) * result.limit


def test_from_params_maps_short_keys():
    query = PaginateSortQuery.from_params({"p": "2", "l": "100", "s": "+id", "x": "y"})
    assert query == PaginateSortQuery(page=2, limit=100, sort="+id")


def test_from_params_empty():
    assert PaginateSortQuery.from_params({}) == PaginateSortQuery()


def test_from_params_invalid_page():
    with pytest.raises(AppError) as info:
        PaginateSortQuery.from_params({"p": "not_an_int"})
    assert info.value.status == HTTPStatus.BAD_REQUEST


@pytest.mark.parametrize("value", ["-1", "", "1.5", str(2**32)])
def test_from_params_rejects_non_u32(value):
    with pytest.raises(AppError) as info:
        PaginateSortQuery.from_params({"l": value})
    assert info.value.status == HTTPStatus.BAD_REQUEST


def test_from_params_duplicate_key():
    with pytest.raises(AppError) as info:
        PaginateSortQuery.from_params([("p", "1"), ("p", "2")])
    assert info.value.status == HTTPStatus.BAD_REQUEST


def test_paginate_response_serialises_items():
    class Item:
        def __init__(self, name):
            self.name = name

        def to_dict(self):
            return {"name": self.name}

    response = PaginateResponse(data=[Item("a"), Item("b")], total=2)
    assert response.to_dict() == {"data": [{"name": "a"}, {"name": "b"}], "total": 2}