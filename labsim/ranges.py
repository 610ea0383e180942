"""Reference ranges: parsing, classification of values and random sampling.

Two textual forms are understood:

* a numeric interval, ``"49 - 92"``;
* a comparator form, ``"<=9.6^^<=9.6"`` (or a single ``"<=9.6"``), used by text oriented
  tests. It is kept on the result as is, but it is not an interval, so values are
  neither classified nor sampled against it.

All functions here are pure apart from drawing from the ``random.Random`` passed in.
"""

from __future__ import annotations

import math
import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import RangeError

_NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)"
_INTERVAL_RE = re.compile(rf"^\s*(?P<low>{_NUMBER})\s*-\s*(?P<high>{_NUMBER})\s*$")
_COMPARATOR = rf"\s*(?P<op{{n}}><=|>=|<|>|=)?\s*(?P<num{{n}}>{_NUMBER})\s*"
_COMPOUND_RE = re.compile(
    "^" + _COMPARATOR.format(n=1) + r"\^\^" + _COMPARATOR.format(n=2) + "$"
)
_SINGLE_RE = re.compile(r"^\s*(?P<op><=|>=|<|>)\s*(?P<num>" + _NUMBER + r")\s*$")

# Upper bound of the abnormal high zone, as a multiple of the range's high value.
ABNORMAL_HIGH_FACTOR = 10

_MAX_PRECISION = 15


class Zone(Enum):
    NORMAL = "normal"
    ABNORMAL_HIGH = "abnormal_high"
    ABNORMAL_LOW = "abnormal_low"


class Classification(Enum):
    NORMAL = "normal"
    ABOVE_HIGH = "above_high"
    BELOW_LOW = "below_low"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ReferenceRange:
    text: str
    low: Optional[float] = None
    high: Optional[float] = None
    # Comparators of the compound form; empty for a numeric interval.
    low_op: str = ""
    high_op: str = ""
    # Decimal places written in the bounds, used as the starting precision when sampling.
    precision: int = 0

    @property
    def is_interval(self) -> bool:
        return not self.low_op and not self.high_op and self.low is not None and self.high is not None


def _decimals(num: str) -> int:
    return len(num.split(".", 1)[1]) if "." in num else 0


def parse_number(value: Optional[str]) -> Optional[float]:
    """The value as a finite float, or None when it is not a plain number."""
    if value is None:
        return None
    s = str(value).strip()
    if not re.fullmatch(_NUMBER, s):
        return None
    f = float(s)
    return f if math.isfinite(f) else None


def parse(text: Optional[str]) -> Optional[ReferenceRange]:
    """Parse a reference range. Empty text means no range and returns None.

    Raises RangeError for text in neither form, or an interval with low > high.
    """
    if text is None or not text.strip():
        return None

    m = _INTERVAL_RE.match(text)
    if m:
        low, high = float(m.group("low")), float(m.group("high"))
        if low > high:
            raise RangeError(f"reference range {text!r}: low bound is above high bound")
        precision = max(_decimals(m.group("low")), _decimals(m.group("high")))
        return ReferenceRange(text=text, low=low, high=high, precision=precision)

    m = _COMPOUND_RE.match(text)
    if m:
        return ReferenceRange(
            text=text,
            low=float(m.group("num1")),
            high=float(m.group("num2")),
            low_op=m.group("op1") or "=",
            high_op=m.group("op2") or "=",
        )

    m = _SINGLE_RE.match(text)
    if m:
        bound = float(m.group("num"))
        op = m.group("op")
        if op.startswith("<"):
            return ReferenceRange(text=text, high=bound, high_op=op)
        return ReferenceRange(text=text, low=bound, low_op=op)

    raise RangeError(f"cannot parse reference range {text!r}")


def classify(value: Optional[str], rng: Optional[ReferenceRange]) -> Classification:
    """Place a value relative to a numeric interval; UNKNOWN when either is not numeric."""
    v = parse_number(value)
    if v is None or rng is None or not rng.is_interval:
        return Classification.UNKNOWN
    if v > rng.high:
        return Classification.ABOVE_HIGH
    if v < rng.low:
        return Classification.BELOW_LOW
    return Classification.NORMAL


def zone_bounds(zone: Zone, rng: ReferenceRange) -> tuple[float, float]:
    """Open interval a value of ``zone`` is drawn from."""
    if not rng.is_interval:
        raise RangeError(f"reference range {rng.text!r} is not a numeric interval")
    if zone is Zone.NORMAL:
        lo, hi = rng.low, rng.high
    elif zone is Zone.ABNORMAL_HIGH:
        lo, hi = rng.high, ABNORMAL_HIGH_FACTOR * rng.high
    elif zone is Zone.ABNORMAL_LOW:
        lo, hi = 0.0, rng.low
    else:
        raise RangeError(f"unknown zone {zone!r}")
    if not lo < hi:
        raise RangeError(f"no {zone.value} values exist for reference range {rng.text!r}")
    return lo, hi


def sample(zone: Zone, rng: ReferenceRange, rand: random.Random) -> str:
    """Draw a value strictly inside ``zone`` of the range, formatted as text.

    The value is written with as many decimals as the range bounds use, adding more
    only when rounding would land on or outside a boundary.
    """
    lo, hi = zone_bounds(zone, rng)
    while True:
        v = rand.uniform(lo, hi)
        if lo < v < hi:
            break
    for precision in range(rng.precision, _MAX_PRECISION + 1):
        rounded = round(v, precision)
        if lo < rounded < hi:
            return f"{rounded:.{precision}f}"
    return repr(v)
