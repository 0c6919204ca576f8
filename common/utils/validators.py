import math
import re

PINCODE_RE = re.compile(r"[0-9]{6}")


def is_valid_pincode(value) -> bool:
    return isinstance(value, str) and PINCODE_RE.fullmatch(value) is not None


def ensure_non_negative_number(value, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field} must be a number")
    if not math.isfinite(value):
        raise ValueError(f"{field} must be a finite number")
    if value < 0:
        raise ValueError(f"{field} must be >= 0")
    return value
