import math
import re
import unicodedata
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from pronote_average.config import COEF_KEY_PREFIX, HIERARCHY_SEPARATOR

_WHITESPACE = re.compile(r"\s+")
_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


# ------------------------
# Text
# ------------------------
def clean_text(s) -> str:
    # \s also covers the non-breaking spaces Pronote puts in titles
    return _WHITESPACE.sub(" ", str(s or "")).strip()


def strip_hierarchy(label: str) -> str:
    """
    "TRONC COMMUN > Physique-Chimie" -> "Physique-Chimie"

    Keeps the rightmost non-empty segment; a label with no usable segment
    is returned unchanged.
    """
    if HIERARCHY_SEPARATOR not in label:
        return label
    segments = [clean_text(p) for p in label.split(HIERARCHY_SEPARATOR)]
    segments = [p for p in segments if p]
    return segments[-1] if segments else label


def normalize_subject_name(s) -> str:
    return strip_hierarchy(clean_text(s))


def subject_key(subject: str) -> str:
    """Stable storage key for a subject's coefficient."""
    return COEF_KEY_PREFIX + subject.lower()


def collation_key(subject: str) -> Tuple[str, str]:
    # accents and case only break ties, as in French dictionary order
    decomposed = unicodedata.normalize("NFKD", subject)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base.casefold(), subject


# ------------------------
# Numbers
# ------------------------
def parse_french_number(text) -> Optional[float]:
    """
    "15,00" -> 15.0, "1 234,5" -> 1234.5

    Whitespace is dropped and the first comma becomes the decimal point.
    Returns None for anything that is not a finite decimal number.
    """
    cleaned = re.sub(r"\s", "", str(text)).replace(",", ".", 1)
    if not _DECIMAL.fullmatch(cleaned):
        return None
    value = float(cleaned)
    return value if math.isfinite(value) else None


def round_2dp_half_up(x: float) -> float:
    return float(Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format2(n) -> str:
    """Two decimals with a French comma; "—" when there is nothing to show."""
    if n is None or not math.isfinite(n):
        return "—"
    return f"{round_2dp_half_up(n):.2f}".replace(".", ",")
