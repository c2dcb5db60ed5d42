"""Shared fixtures: API client and sample indents."""
import pytest
from fastapi.testclient import TestClient

from app.main import app
from tests.factories import indent_line, make_indent


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def indent_a():
    """Older indent: item 10 with 5 left, item 20 with 3 left (10 approved, 7 ordered)."""
    return make_indent(
        1,
        "2024-01-01T00:00:00.000Z",
        [
            indent_line(11, 10, 5, remark=" urgent "),
            indent_line(12, 20, 10, ordered=[4, 3]),
        ],
        delivery_date="2024-01-15",
    )


@pytest.fixture
def indent_b():
    """Newer indent: item 10 with 5 left, item 30 fully ordered."""
    return make_indent(
        2,
        "2024-01-02",
        [
            indent_line(21, 10, 5, remark="second"),
            indent_line(22, 30, 12, ordered=[12]),
        ],
        delivery_date="2024-01-20",
    )
