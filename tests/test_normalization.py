import pytest

from recipients_etl.normalization import (
    normalize_address,
    normalize_country_iso2,
    normalize_name,
    normalize_state,
    normalize_zip,
    split_unit,
)
from recipients_etl.similarity import levenshtein_distance, similarity


def test_normalize_name_strips_punctuation():
    assert normalize_name("O'Brien, Mary-Jane") == "obrien mary jane"
    assert normalize_name("OBrien Mary Jane") == "obrien mary jane"
    assert normalize_name("  JOHN   SMITH ") == "john smith"
    assert normalize_name("J. R. R. Tolkien") == "j r r tolkien"


def test_normalize_name_folds_accents():
    assert normalize_name("José Müller") == "jose muller"


@pytest.mark.parametrize(
    "raw",
    ["123 Main Street", "123 main st.", "123  MAIN  ST", "123 Main Str"],
)
def test_normalize_address_street_types(raw):
    assert normalize_address(raw) == "123 main st"


@pytest.mark.parametrize(
    "raw",
    [
        "123 Main St Apartment 5",
        "123 Main St Apt. 5",
        "123 Main St Appt 5",
        "123 Main St #5",
        "123 Main St Apt #5",
        "123 Main St, Unit 5",
    ],
)
def test_normalize_address_unit_designators(raw):
    assert normalize_address(raw) == "123 main st apt 5"


def test_normalize_address_directions_and_suites():
    assert normalize_address("500 North Lake Avenue Suite 200") == "500 n lake ave ste 200"


@pytest.mark.parametrize(
    "raw",
    [
        "O'Brien, Mary-Jane",
        "123 North Main Street, Apt #4",
        "Suite 9, 1 Infinite Loop",
        "M5H 2N2",
        "62701-1234",
        "1234-56789",
        "",
    ],
)
def test_normalizers_are_idempotent(raw):
    assert normalize_name(normalize_name(raw)) == normalize_name(raw)
    assert normalize_address(normalize_address(raw)) == normalize_address(raw)
    assert normalize_zip(normalize_zip(raw)) == normalize_zip(raw)


def test_normalize_zip():
    assert normalize_zip("62701-1234") == "62701"
    assert normalize_zip("62701 1234") == "62701"
    assert normalize_zip("62701") == "62701"
    assert normalize_zip("M5H 2N2") == "M5H2N2"
    assert normalize_zip("m5h2n2") == "M5H2N2"
    assert normalize_zip("1234-56789") == "12345"
    assert normalize_zip(None) == ""


def test_split_unit():
    assert split_unit("123 main st apt 5") == ("123 main st", "apt 5")
    assert split_unit("123 main st") == ("123 main st", "")
    assert split_unit("apt 5b 100 broadway") == ("100 broadway", "apt 5b")


def test_normalize_state_and_country():
    assert normalize_state("Illinois") == "IL"
    assert normalize_state("il") == "IL"
    assert normalize_state("") == ""
    assert normalize_country_iso2("United States") == "US"
    assert normalize_country_iso2("ca") == "CA"
    assert normalize_country_iso2("U.S.A.") == "US"
    assert normalize_country_iso2("Narnia") == "Narnia"
    assert normalize_country_iso2(None) == ""


def test_similarity_bounds_and_symmetry():
    assert similarity("", "") == 1.0
    assert similarity("", "abc") == 0.0
    assert similarity("john smith", "john smith") == 1.0
    assert levenshtein_distance("kitten", "sitting") == 3
    assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
    assert similarity("jon smith", "john smith") == similarity("john smith", "jon smith")
    assert 0.0 <= similarity("abc", "xyz") <= 1.0


def test_similarity_long_strings_have_no_cap():
    left = "a" * 5000
    right = "a" * 4999 + "b"
    assert similarity(left, right) == pytest.approx(1 - 1 / 5000)
