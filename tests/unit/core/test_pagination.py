from __future__ import annotations

import pytest

from modules.core.pagination import PageResult, clamp_limit

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("total", "limit", "pages"),
    [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (101, 100, 2)],
)
def test_total_pages(total, limit, pages):
    assert PageResult(total=total, limit=limit).total_pages == pages


def test_clamp_limit_defaults_and_caps(settings):
    settings.ORDER_DEFAULT_PAGE_SIZE = 10
    settings.ORDER_MAX_PAGE_SIZE = 100

    assert clamp_limit(None) == 10
    assert clamp_limit(0) == 10
    assert clamp_limit(25) == 25
    assert clamp_limit(1000) == 100
