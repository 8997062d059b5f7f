"""Reading a glucose value off a meter photo.

The detected number only pre-fills the entry field; the user always confirms it.
"""

from __future__ import annotations

import io
import logging
import re
from collections import Counter
from dataclasses import dataclass

import pytesseract
from PIL import Image, UnidentifiedImageError

PLAUSIBLE_MIN = 40
PLAUSIBLE_MAX = 400

_NUMBER = re.compile(r"\d{2,3}")

logger = logging.getLogger(__name__)


class OcrError(Exception):
    pass


@dataclass(frozen=True)
class OcrResult:
    value: int | None
    raw_text: str


def extract_glucose_value(text: str) -> int | None:
    numbers = [int(match) for match in _NUMBER.findall(text)]
    plausible = [n for n in numbers if PLAUSIBLE_MIN <= n <= PLAUSIBLE_MAX]
    if plausible:
        # most_common keeps first-seen order on ties
        return Counter(plausible).most_common(1)[0][0]
    if numbers:
        return numbers[0]
    return None


def run_ocr_on_image(data: bytes, lang: str = "eng") -> OcrResult:
    try:
        with Image.open(io.BytesIO(data)) as image:
            text = pytesseract.image_to_string(image.convert("L"), lang=lang)
    except UnidentifiedImageError as exc:
        raise OcrError("הקובץ אינו תמונה נתמכת.") from exc
    except pytesseract.TesseractError as exc:
        logger.warning("Tesseract failed: %s", exc)
        raise OcrError("אירעה שגיאה בזמן הזיהוי. נסי שוב.") from exc
    except pytesseract.TesseractNotFoundError as exc:
        logger.error("Tesseract binary is not installed")
        raise OcrError("מנוע הזיהוי אינו מותקן בשרת.") from exc
    return OcrResult(value=extract_glucose_value(text), raw_text=text)
