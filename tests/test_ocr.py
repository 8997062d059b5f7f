from app.ocr import extract_glucose_value


def test_picks_plausible_reading_over_clock_digits():
    assert extract_glucose_value("12:30\n104 mg/dL\n") == 104


def test_most_frequent_plausible_value_wins():
    assert extract_glucose_value("95 120 mg/dL 120") == 120


def test_tie_goes_to_first_seen():
    assert extract_glucose_value("110 98") == 110


def test_falls_back_to_first_number():
    assert extract_glucose_value("12 15 450") == 12


def test_no_digits():
    assert extract_glucose_value("HI") is None
    assert extract_glucose_value("") is None
