"""Field validators shared by registration, listings and checkout.

All functions are pure and never raise on bad input; they answer ``False``
(or ``0`` for the strength score) instead.
"""
import re
from datetime import date
from decimal import Decimal, InvalidOperation

EMAIL_RE = re.compile(r"[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+")
USERNAME_RE = re.compile(r"[A-Za-z0-9_]{4,}")
STRONG_PASSWORD_RE = re.compile(r"(?=.*[0-9])(?=.*[A-Z]).{6,}", re.S)
PHONE_RE = re.compile(r"0[0-9]{9}")
EXPIRY_RE = re.compile(r"([0-9]{2})/([0-9]{2})")
CVV_RE = re.compile(r"[0-9]{3,4}")
YEAR_RE = re.compile(r"[0-9]{1,4}")
CARD_RE = re.compile(r"[0-9]{13,19}")

MIN_YEAR = 1900


def _matches(pattern, s) -> bool:
    return isinstance(s, str) and pattern.fullmatch(s) is not None


def is_valid_email(s) -> bool:
    return _matches(EMAIL_RE, s)


def is_valid_username(s) -> bool:
    return _matches(USERNAME_RE, s)


def is_valid_password(s) -> bool:
    return isinstance(s, str) and len(s) >= 6


def is_strong_password(s) -> bool:
    """At least 6 characters with one digit and one uppercase letter."""
    return _matches(STRONG_PASSWORD_RE, s)


def is_valid_phone(s) -> bool:
    return _matches(PHONE_RE, s)


def is_valid_year(s, today: date | None = None) -> bool:
    if isinstance(s, int) and not isinstance(s, bool):
        s = str(s)
    if not _matches(YEAR_RE, s):
        return False
    year = int(s)
    current = (today or date.today()).year
    return MIN_YEAR <= year <= current


def to_decimal(v) -> Decimal | None:
    if v is None or isinstance(v, bool):
        return None
    try:
        d = Decimal(str(v).strip())
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def is_valid_price(p) -> bool:
    d = to_decimal(p)
    return d is not None and d > 0


def calculate_password_strength(s) -> int:
    if not s or not isinstance(s, str):
        return 0
    if len(s) >= 8:
        strength = 25
    elif len(s) >= 6:
        strength = 10
    else:
        strength = 5
    if re.search(r"[A-Z]", s):
        strength += 25
    if re.search(r"[a-z]", s):
        strength += 10
    if re.search(r"[0-9]", s):
        strength += 25
    if re.search(r"[^A-Za-z0-9]", s):
        strength += 25
    return min(strength, 100)


def strip_card_number(s) -> str:
    return re.sub(r"\s", "", s) if isinstance(s, str) else ""


def luhn_ok(digits: str) -> bool:
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def is_valid_card_number(s) -> bool:
    digits = strip_card_number(s)
    if not _matches(CARD_RE, digits):
        return False
    return luhn_ok(digits)


def is_valid_expiry(s, today: date | None = None) -> bool:
    m = EXPIRY_RE.fullmatch(s) if isinstance(s, str) else None
    if not m:
        return False
    month, year = int(m.group(1)), int(m.group(2)) + 2000
    if not 1 <= month <= 12:
        return False
    today = today or date.today()
    return (year, month) >= (today.year, today.month)


def is_valid_cvv(s) -> bool:
    return _matches(CVV_RE, s)


def is_alphabetic(s) -> bool:
    return isinstance(s, str) and re.fullmatch(r"[A-Za-zА-Яа-я\s]+", s) is not None


def is_numeric(s) -> bool:
    return isinstance(s, str) and re.fullmatch(r"[0-9]+", s) is not None


def has_min_length(s, n: int) -> bool:
    return isinstance(s, str) and len(s.strip()) >= n


def normalize_search_term(s: str | None) -> str | None:
    """Collapse whitespace and join spaced initials ("B. C. Rich" -> "B.C. Rich")."""
    if not isinstance(s, str):
        return None
    s = re.sub(r"\s+", " ", s.strip())
    return re.sub(r"(\w)\.\s+(\w)\.", r"\1.\2.", s)
