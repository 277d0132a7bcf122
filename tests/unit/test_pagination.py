import pytest

from church_clerk.features.member_contributions.pagination import (
    build_page_info,
    coerce_positive_int,
    paginate,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, 10),
        ("", 10),
        ("abc", 10),
        ("0", 10),
        ("-4", 1),
        ("3", 3),
        ("3abc", 3),
        (" 7", 7),
        (25, 25),
        (2.9, 2),
    ],
)
def test_coerce_limit(value, expected):
    assert coerce_positive_int(value, 10) == expected


def test_coerce_page_never_below_one():
    assert coerce_positive_int("-1", 1) == 1
    assert coerce_positive_int(0, 1) == 1


def test_page_info_first_of_two():
    info = build_page_info(total_items=3, page=1, limit=2)

    assert info.total_pages == 2
    assert info.has_prev is False
    assert info.prev_page is None
    assert info.has_next is True
    assert info.next_page == 2


def test_page_info_empty_result():
    info = build_page_info(total_items=0, page=1, limit=10)

    assert info.total_pages == 0
    assert info.has_next is False
    assert info.next_page is None


def test_paginate_past_the_end_returns_empty_page():
    items, info = paginate([1, 2, 3], page=5, limit=2)

    assert items == []
    assert info.total_items == 3
    assert info.current_page == 5
    assert info.has_next is False
    assert info.has_prev is True
    assert info.prev_page == 4


def test_paginate_slices_requested_page():
    items, info = paginate(list(range(10)), page=2, limit=4)

    assert items == [4, 5, 6, 7]
    assert info.total_pages == 3
