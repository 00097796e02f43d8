import pytest

from import_engine import duration_months


@pytest.mark.parametrize("raw, expected", [
    ("1", 6),
    ("2", 12),
    ("4", 24),
    ("3 semesters", 18),
    ("6", 6),
    ("18", 18),
    ("24 months", 24),
    ("5", 12),
    ("0", 12),
    ("", 12),
    ("abc", 12),
    (None, 12),
])
def test_duration_months(raw, expected):
    assert duration_months(raw) == expected
