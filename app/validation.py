import re

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_glucose_input(text: str | None) -> int | None:
    """Integer typed in the value field, or None while the form is incomplete.

    Reads the leading digits the way a browser integer parse does, so "104 mg"
    gives 104 and "abc" gives None.
    """
    if not text:
        return None
    match = _LEADING_INT.match(text)
    if match is None:
        return None
    return int(match.group(1))


def validate_glucose_value(value: int) -> tuple[bool, str]:
    if value < 20 or value > 600:
        return False, "הערך נראה מחוץ לטווח הפיזיולוגי (20-600 mg/dL)."
    return True, ""


def validate_email(email: str) -> tuple[bool, str]:
    if not _EMAIL.match(email.strip()):
        return False, "כתובת האימייל אינה תקינה."
    return True, ""


def validate_password(password: str) -> tuple[bool, str]:
    if len(password) < 6:
        return False, "הסיסמה חייבת להכיל לפחות 6 תווים."
    return True, ""

