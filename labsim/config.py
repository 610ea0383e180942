"""HL7 vocabulary and encoding configuration, loaded from YAML."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .errors import ConfigError

CONFIG_DIR = Path(__file__).resolve().parent / "configs"
DEFAULT_HL7_CONFIG = CONFIG_DIR / "hl7.yml"


@dataclass
class OrderControl:
    new: str = "NW"


@dataclass
class OrderStatus:
    in_process: str = "IP"
    completed: str = "CM"


@dataclass
class ResultStatus:
    preliminary: str = "P"
    final: str = "F"
    corrected: str = "C"
    authenticated_verified: str = "AUTHVRF"


@dataclass
class AbnormalFlags:
    above_high_normal: str = "H"
    below_low_normal: str = "L"
    normal: str = ""


@dataclass
class Encoding:
    field: str = "|"
    component: str = "^"
    repetition: str = "~"
    escape: str = "\\"
    subcomponent: str = "&"
    segment_terminator: str = "\r"

    @property
    def encoding_characters(self) -> str:
        """MSH-2."""
        return f"{self.component}{self.repetition}{self.escape}{self.subcomponent}"


@dataclass
class HL7Config:
    order_control: OrderControl = field(default_factory=OrderControl)
    order_status: OrderStatus = field(default_factory=OrderStatus)
    result_status: ResultStatus = field(default_factory=ResultStatus)
    abnormal_flags: AbnormalFlags = field(default_factory=AbnormalFlags)
    encoding: Encoding = field(default_factory=Encoding)
    coding_system: str = "WinPath"
    timezone: str = "Europe/London"
    processing_id: str = "T"
    version: str = "2.3"
    mrn_assigning_authority: str = "SIMULATOR MRN"

    @property
    def location(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


_SECTIONS = {
    "order_control": OrderControl,
    "order_status": OrderStatus,
    "result_status": ResultStatus,
    "abnormal_flags": AbnormalFlags,
    "encoding": Encoding,
}


def _section(cls, data: Optional[Dict[str, Any]], name: str):
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"section {name!r} must be a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"unknown keys in section {name!r}: {sorted(unknown)}")
    # YAML turns empty values into None; keep them as empty strings.
    return cls(**{k: "" if v is None else str(v) for k, v in data.items()})


def hl7_config_from_dict(data: Dict[str, Any]) -> HL7Config:
    kwargs: Dict[str, Any] = {}
    for key, value in (data or {}).items():
        if key in _SECTIONS:
            kwargs[key] = _section(_SECTIONS[key], value, key)
        elif key in {f.name for f in fields(HL7Config)}:
            kwargs[key] = "" if value is None else str(value)
        else:
            raise ConfigError(f"unknown HL7 config key: {key!r}")
    cfg = HL7Config(**kwargs)
    try:
        cfg.location
    except (ZoneInfoNotFoundError, ValueError) as err:
        raise ConfigError(f"unknown time zone {cfg.timezone!r}") from err
    return cfg


def load_hl7_config(path: str | Path | None = None) -> HL7Config:
    """Load the HL7 config at ``path``, or the packaged defaults."""
    p = Path(path) if path else DEFAULT_HL7_CONFIG
    if not p.exists():
        raise ConfigError(f"HL7 config not found: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as err:
        raise ConfigError(f"cannot parse HL7 config {p}") from err
    return hl7_config_from_dict(data)
