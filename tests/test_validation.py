from app.validation import (
    parse_glucose_input,
    validate_email,
    validate_glucose_value,
    validate_password,
)


def test_parse_glucose_input_incomplete_form():
    assert parse_glucose_input("") is None
    assert parse_glucose_input(None) is None
    assert parse_glucose_input("abc") is None


def test_parse_glucose_input_reads_leading_integer():
    assert parse_glucose_input("104") == 104
    assert parse_glucose_input(" 98 mg/dL") == 98
    assert parse_glucose_input("120.7") == 120


def test_validate_glucose_value_rules():
    valid, _ = validate_glucose_value(110)
    assert valid

    low, _ = validate_glucose_value(10)
    assert not low

    high, _ = validate_glucose_value(700)
    assert not high


def test_account_field_rules():
    assert validate_email("mama@example.com")[0]
    assert not validate_email("not-an-email")[0]
    assert validate_password("secret1")[0]
    assert not validate_password("123")[0]
