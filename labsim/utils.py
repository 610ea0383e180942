"""Utility helpers for HL7 building: escaping, timestamps and sequence IDs."""

from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from .config import Encoding
from .errors import EncodingError
from .models import NullTime

log = logging.getLogger(__name__)

HL7_TS_FORMAT = "%Y%m%d%H%M%S"

_UTC_ZONE_KEYS = {"UTC", "Etc/UTC", "Zulu", "Etc/Zulu", "Universal", "Etc/Universal"}


def hl7_escape(value: Optional[str], enc: Optional[Encoding] = None) -> str:
    """Escape HL7 delimiters in free text.

    The escape character, the four separators and line breaks (real ones and the
    two-character ``\\n`` written in pathway files) become their escape sequences.
    """
    if not value:
        return ""
    enc = enc or Encoding()
    e = enc.escape
    table = {
        "\r\n": f"{e}.br{e}",
        "\n": f"{e}.br{e}",
        "\r": f"{e}.br{e}",
        "\\n": f"{e}.br{e}",
        e: f"{e}E{e}",
        enc.field: f"{e}F{e}",
        enc.component: f"{e}S{e}",
        enc.subcomponent: f"{e}T{e}",
        enc.repetition: f"{e}R{e}",
    }
    # Longest first so line breaks win over a lone escape character.
    pattern = "|".join(re.escape(k) for k in sorted(table, key=len, reverse=True))
    return re.sub(pattern, lambda m: table[m.group(0)], str(value))


def hl7_repeated(values: Iterable[str], enc: Optional[Encoding] = None) -> str:
    """Join the items of a repeated field."""
    enc = enc or Encoding()
    return enc.repetition.join(values)


def _is_utc(dt: datetime) -> bool:
    tz = dt.tzinfo
    if tz is None:
        return False
    if tz is timezone.utc:
        return True
    return isinstance(tz, ZoneInfo) and tz.key in _UTC_ZONE_KEYS


def ts_hl7(nt: Optional[NullTime], tz: ZoneInfo) -> str:
    """HL7 TS (YYYYMMDDHHMMSS) in ``tz``; invalid or None -> ''.

    Stored times must be UTC. A midnight-tagged time renders as local midnight of the
    calendar day it falls on in ``tz``.
    """
    if nt is None or not nt.valid:
        return ""
    if nt.time is None or not _is_utc(nt.time):
        raise EncodingError(f"time {nt.time!r} is not in UTC")
    local = nt.time.astimezone(tz)
    if nt.midnight:
        local = datetime(local.year, local.month, local.day, tzinfo=tz)
    return local.strftime(HL7_TS_FORMAT)


class SequenceIDGenerator:
    """Incrementing string IDs, optionally persisted between runs in ``counter_file``."""

    def __init__(self, start: int = 0, counter_file: str | Path | None = None):
        self._lock = threading.Lock()
        self._counter_file = Path(counter_file) if counter_file else None
        self._current = start
        if self._counter_file and self._counter_file.exists():
            text = self._counter_file.read_text(encoding="utf-8").strip()
            self._current = max(start, int(text or "0"))
            log.debug("resuming IDs after %d from %s", self._current, self._counter_file)

    def new_id(self) -> str:
        with self._lock:
            self._current += 1
            if self._counter_file:
                self._counter_file.write_text(str(self._current), encoding="utf-8")
            return str(self._current)
