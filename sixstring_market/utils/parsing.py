from enum import Enum
from ..errors import ValidationError
from ..validators import to_decimal


def parse_int(v, default=None, minv=None, maxv=None):
    if v is None or v == "":
        return default
    try:
        n = int(v)
    except (TypeError, ValueError):
        return default
    if minv is not None and n < minv:
        return default
    if maxv is not None and n > maxv:
        return default
    return n


def parse_decimal(v, default=None):
    if v is None or v == "":
        return default
    d = to_decimal(v)
    return d if d is not None else default


def parse_enum(enum_cls: type[Enum], v, field: str, required: bool = False):
    """Map a symbolic name (case-insensitive) onto ``enum_cls``."""
    if v is None or v == "":
        if required:
            raise ValidationError(f"missing_{field}", f"{field} is required")
        return None
    if isinstance(v, enum_cls):
        return v
    try:
        return enum_cls[str(v).strip().upper()]
    except KeyError:
        raise ValidationError(f"invalid_{field}", f"Unknown {field}: {v}") from None


def clean_str(v):
    if v is None:
        return None
    v = str(v).strip()
    return v or None


def as_text(v) -> str:
    """Form value as a string, unstripped (passwords keep their spaces)."""
    if v is None:
        return ""
    return v if isinstance(v, str) else str(v)
