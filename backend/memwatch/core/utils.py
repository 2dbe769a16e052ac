"""
Value parsing and unit helpers shared by the config reader and formatting.
"""
import math
import re
from datetime import timedelta

from memwatch.core.exceptions import ConfigValueInvalid

MIB = 1024 * 1024

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # micro sign
    "μs": 1e-6,  # greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"([0-9]+\.?[0-9]*|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")
_INTEGER = re.compile(r"[+-]?[0-9]+")

INT64_MAX = 2**63 - 1
# Largest duration representable as int64 nanoseconds
MAX_DURATION_SECONDS = INT64_MAX / 1e9


def parse_duration(key: str, value: str) -> timedelta:
    """
    Parse duration text such as "30s", "1m30s", "1.5h" or "250ms".

    Args:
        key: ConfigMap key the value came from, used in the error
        value: Raw text

    Returns:
        Parsed duration

    Raises:
        ConfigValueInvalid: if the text is empty, malformed or out of range
    """
    text = (value or "").strip()
    if not text:
        raise ConfigValueInvalid(key, value, "empty duration")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ConfigValueInvalid(key, value, "unparsable duration")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos == 0:
        raise ConfigValueInvalid(key, value, "unparsable duration")
    if not math.isfinite(total) or total > MAX_DURATION_SECONDS:
        raise ConfigValueInvalid(key, value, "duration out of range")

    return timedelta(seconds=sign * total)


def parse_int(key: str, value: str) -> int:
    """Parse base-10 int64 text with an optional sign."""
    text = (value or "").strip()
    if not _INTEGER.fullmatch(text):
        raise ConfigValueInvalid(key, value, "not a base-10 integer")
    digits = text.lstrip("+-").lstrip("0")
    if len(digits) > 19 or not -INT64_MAX - 1 <= int(text) <= INT64_MAX:
        raise ConfigValueInvalid(key, value, "value out of range")
    return int(text)


def bytes_to_mb(value: int) -> int:
    """Convert bytes to whole MiB, truncating toward zero like C integer division."""
    mb = abs(value) // MIB
    return -mb if value < 0 else mb
