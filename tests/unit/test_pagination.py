"""
Unit tests for pagination derivation.
"""
import pytest

from backend.app.api.pagination import derive_pagination


def test_defaults():
    assert derive_pagination().model_dump() == {"page": 1, "limit": 10, "skip": 0}


def test_numeric_strings():
    assert derive_pagination("3", "5").model_dump() == {"page": 3, "limit": 5, "skip": 10}


@pytest.mark.parametrize("page, limit", [("abc", "xyz"), ("", ""), ("0", "0"), ("-2", "-5"), ("1.5", None)])
def test_bad_input_falls_back_to_defaults(page, limit):
    pagination = derive_pagination(page, limit)
    assert (pagination.page, pagination.limit, pagination.skip) == (1, 10, 0)


def test_limit_is_capped():
    assert derive_pagination("2", "5000").limit == 100
    assert derive_pagination("2", "5000").skip == 100
