import re
from typing import Tuple

IN = float
LB = float

# suffixes accepted after a number in catalog files
_SUFFIXES = ('"', "in", "inch", "inches", "lb", "lbs")
_DIMENSION_SEPARATOR = re.compile(r"\s*[x×*]\s*", re.IGNORECASE)


def _strip_suffix(text: str) -> str:
    lowered = text.lower()
    for suffix in sorted(_SUFFIXES, key=len, reverse=True):
        if lowered.endswith(suffix):
            return text[: -len(suffix)].rstrip()
    return text


def parse_float(value) -> float:
    """Read a number written as ``12.5``, ``12,5``, ``12.5 in`` or ``3 lb``."""
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    text = _strip_suffix(str(value).strip())
    if not text:
        raise ValueError("empty input")
    return float(text.replace(",", "."))


def parse_dimensions(text: str) -> Tuple[float, float, float]:
    """Split ``"24 x 16 x 12"`` into three numbers (length, width, height)."""
    parts = [part for part in _DIMENSION_SEPARATOR.split(text.strip()) if part]
    if len(parts) != 3:
        raise ValueError(f"expected three dimensions, got {text!r}")
    length, width, height = (parse_float(part) for part in parts)
    return length, width, height


def format_float(value: float, ndigits: int = 2) -> str:
    return f"{value:.{ndigits}f}"
