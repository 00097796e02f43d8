import pytest

from import_engine import validate
from import_engine.validator import is_emptyish, is_valid_email


def test_placeholder_mentee_is_a_warning():
    rows = [{
        "Mentor Email": "A@X.com",
        "Mentor Name": "Dr. A",
        "mentee email": "-",
        "Project Name": "Demo",
    }]
    result = validate(rows)

    assert result.errors == []
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("Row 1: No Mentee Email provided")
    row = result.valid_rows[0]
    assert row.mentor_email == "a@x.com"
    assert row.mentee_email == ""
    assert row.has_mentee is False
    assert row.project_status == "pending"
    assert row.project_details == "Imported from CSV"
    assert row.row_number == 1


def test_missing_required_fields_are_collected_per_row():
    rows = [
        {"Project Name": "", "Mentor Name": "", "Mentor Email": "", "Mentee Email": "m@x.com"},
        {"Project Name": "P", "Mentor Name": "M", "Mentor Email": "m@x.com", "Mentee Email": "e@x.com"},
    ]
    result = validate(rows)

    assert result.errors == [
        "Row 1: Project Name is required, Mentor Name is required, Mentor Email is required",
    ]
    assert [r.row_number for r in result.valid_rows] == [2]


def test_invalid_emails_exclude_row():
    rows = [
        {"Project Name": "P", "Mentor Name": "M", "Mentor Email": "not-an-email",
         "Mentee Email": "e@x.com"},
        {"Project Name": "Q", "Mentor Name": "M", "Mentor Email": "m@x.com",
         "Mentee Email": "e@x"},
    ]
    result = validate(rows)

    assert result.valid_rows == []
    assert result.errors == [
        "Row 1: Invalid Mentor Email format",
        "Row 2: Invalid Mentee Email format",
    ]


def test_mentee_name_derived_from_email():
    rows = [{"Project Name": "P", "Mentor Name": "M", "Mentor Email": "m@x.com",
             "Mentee Email": "Jane.Doe@x.com"}]
    row = validate(rows).valid_rows[0]
    assert row.mentee_name == "Jane.Doe"
    assert row.mentee_email == "jane.doe@x.com"


def test_empty_file():
    assert validate([]).errors == ["File is empty"]


@pytest.mark.parametrize("value", [None, "", "  ", "-", "—", "_", "NA", "n/a", "N/A"])
def test_emptyish_values(value):
    assert is_emptyish(value)


def test_email_pattern():
    assert is_valid_email("a.b@dept.uni.edu")
    assert not is_valid_email("a b@x.com")
    assert not is_valid_email("a@x")
