import pytest

from recipients_etl.csv_import import (
    generate_csv_template,
    normalize_column_name,
    parse_csv,
    split_csv_line,
)
from recipients_etl.errors import CsvFormatError, ImportFormatError
from recipients_etl.validation import ValidationSettings, postal_label, validate_recipient

HEADER = "name,address1,city,state,zip,country"


def test_template_parses_cleanly():
    result = parse_csv(generate_csv_template())
    assert result.total_rows == 1
    assert result.invalid == []
    assert len(result.valid) == 1
    row = result.valid[0]
    assert row.row_number == 2
    assert row.data["name"] == "John Doe"
    assert row.data["address2"] == "Apt 4B"
    assert row.data["country"] == "US"


def test_template_header_row():
    header = generate_csv_template().splitlines()[0]
    assert header == "name,address1,address2,city,state,zip,country"


def test_quoted_field_keeps_comma():
    text = "\n".join([HEADER, '"Doe, John",123 Main St,New York,NY,10001,US'])
    result = parse_csv(text)
    assert len(result.valid) == 1
    assert result.valid[0].data["name"] == "Doe, John"


def test_doubled_quotes_inside_quoted_field():
    assert split_csv_line('"Jane ""JJ"" Doe",1 Elm St') == ['Jane "JJ" Doe', "1 Elm St"]


def test_missing_required_column_raises():
    text = "\n".join(["name,city,state,zip", "John,New York,NY,10001"])
    with pytest.raises(CsvFormatError, match="Missing required columns: address1"):
        parse_csv(text)


def test_header_only_raises():
    with pytest.raises(ImportFormatError, match="at least a header row"):
        parse_csv(HEADER)
    with pytest.raises(CsvFormatError):
        parse_csv("")


def test_column_aliases_are_recognised():
    text = "\n".join(
        [
            "Full_Name,Street,City,Province,Postal_Code",
            "Jane Doe,9 King St,Toronto,ON,10001",
        ]
    )
    result = parse_csv(text)
    assert len(result.valid) == 1
    data = result.valid[0].data
    assert data["address1"] == "9 King St"
    assert data["state"] == "ON"
    assert data["country"] == "US"


def test_normalize_column_name():
    assert normalize_column_name(" ZipCode ") == "zip"
    assert normalize_column_name("\ufeffname") == "name"
    assert normalize_column_name("Address_Line_2") == "address2"
    assert normalize_column_name("phone") is None


def test_first_duplicate_column_wins():
    text = "\n".join(
        [
            "name,address,street,city,state,zip",
            "John Doe,1 First St,2 Second St,Springfield,IL,62701",
        ]
    )
    result = parse_csv(text)
    assert result.valid[0].data["address1"] == "1 First St"


def test_blank_lines_are_counted_but_skipped():
    text = "\n".join(
        [
            HEADER,
            "John Doe,1 Elm St,Springfield,IL,62701,US",
            "",
            "Jane Doe,2 Elm St,Springfield,IL,62701,US",
        ]
    )
    result = parse_csv(text)
    assert result.total_rows == 3
    assert [row.row_number for row in result.valid] == [2, 4]


def test_crlf_line_endings():
    text = "\r\n".join([HEADER, "John Doe,1 Elm St,Springfield,IL,62701,US"]) + "\r\n"
    result = parse_csv(text)
    assert result.total_rows == 1
    assert result.valid[0].data["country"] == "US"


def test_invalid_rows_report_field_errors():
    text = "\n".join(
        [
            HEADER,
            "John Doe,,Springfield,IL,62701,US",
            ",1 Elm St,Springfield,IL,ABCDE,US",
        ]
    )
    result = parse_csv(text)
    assert result.valid == []
    first, second = result.invalid
    assert first.row_number == 2
    assert first.errors == ["address1: Address is required"]
    assert first.data["name"] == "John Doe"
    assert second.row_number == 3
    assert "name: Name is required" in second.errors
    assert "zip: ZIP code must be in format 12345 or 12345-6789" in second.errors


def test_empty_country_defaults_to_us():
    text = "\n".join([HEADER, "John Doe,1 Elm St,Springfield,IL,62701,"])
    assert parse_csv(text).valid[0].data["country"] == "US"


def test_zip_plus_four_is_valid():
    text = "\n".join([HEADER, "John Doe,1 Elm St,Springfield,IL,62701-1234,US"])
    assert parse_csv(text).valid[0].data["zip"] == "62701-1234"


def test_custom_zip_pattern_setting():
    settings = ValidationSettings(zip_pattern=r"^[A-Z0-9 ]{3,10}$", default_country="CA")
    text = "\n".join(["name,address1,city,state,zip", "Jane Doe,9 King St,Toronto,ON,M5H 2N2"])
    result = parse_csv(text, settings)
    assert len(result.valid) == 1
    assert result.valid[0].data["country"] == "CA"


def test_parsed_row_to_recipient():
    row = parse_csv(generate_csv_template()).valid[0]
    recipient = row.to_recipient()
    assert recipient.name == "John Doe"
    assert recipient.address2 == "Apt 4B"
    assert recipient.to_dict()["zip"] == "10001"


def test_invalid_parsed_row_cannot_become_recipient():
    text = "\n".join([HEADER, "John Doe,,Springfield,IL,62701,US"])
    row = parse_csv(text).invalid[0]
    with pytest.raises(ValueError):
        row.to_recipient()


def test_validate_recipient_length_limits():
    data = {
        "name": "x" * 101,
        "address1": "1 Elm St",
        "city": "Springfield",
        "state": "I",
        "zip": "62701",
    }
    cleaned, errors = validate_recipient(data)
    assert "name: Name must be at most 100 characters" in errors
    assert "state: State is required" in errors
    assert cleaned["address2"] is None


def test_postal_label():
    assert postal_label("us") == "ZIP Code"
    assert postal_label("GB") == "Postcode"
    assert postal_label("ZZ") == "Postal Code"


if __name__ == "__main__":
    pytest.main(["-q"])
