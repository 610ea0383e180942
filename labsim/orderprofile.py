"""Order profiles: named panels of tests, loaded from YAML.

File layout::

    UREA AND ELECTROLYTES:
      universal_service_id: lpdc-3969
      test_types:
        Creatinine:
          id: lpdc-2012
          value_type: NM
          value: 51
          unit: UMOLL
          ref_range: 49 - 92
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config import CONFIG_DIR, HL7Config
from .errors import ConfigError
from .models import CodedElement

log = logging.getLogger(__name__)

DEFAULT_ORDER_PROFILES = CONFIG_DIR / "order_profiles.yml"


@dataclass
class TestType:
    test_name: CodedElement
    value_type: str = ""
    # Used when a value must be made up but the range is not a numeric interval.
    value: str = ""
    unit: str = ""
    ref_range: str = ""


@dataclass
class OrderProfile:
    universal_service_id: CodedElement
    test_types: Dict[str, TestType] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.universal_service_id.text


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class OrderProfiles:
    def __init__(self, profiles: Dict[str, OrderProfile]):
        self._profiles = dict(profiles)

    def names(self) -> List[str]:
        return sorted(self._profiles)

    def resolve(self, name: str) -> Optional[OrderProfile]:
        return self._profiles.get(name)

    def random(self, rng: random.Random) -> OrderProfile:
        if not self._profiles:
            raise ConfigError("no order profiles loaded")
        return self._profiles[rng.choice(self.names())]

    def __len__(self) -> int:
        return len(self._profiles)


def order_profiles_from_dict(data: Dict[str, Any], config: HL7Config) -> OrderProfiles:
    profiles: Dict[str, OrderProfile] = {}
    for name, body in (data or {}).items():
        if not isinstance(body, dict):
            raise ConfigError(f"order profile {name!r} must be a mapping")
        name = str(name)
        profile = OrderProfile(
            universal_service_id=CodedElement(
                id=_text(body.get("universal_service_id")) or name,
                text=name,
                coding_system=config.coding_system,
            )
        )
        for test_name, tt in (body.get("test_types") or {}).items():
            tt = tt or {}
            test_name = str(test_name)
            profile.test_types[test_name] = TestType(
                test_name=CodedElement(
                    id=_text(tt.get("id")) or test_name,
                    text=test_name,
                    coding_system=config.coding_system,
                ),
                value_type=_text(tt.get("value_type")),
                value=_text(tt.get("value")),
                unit=_text(tt.get("unit")),
                ref_range=_text(tt.get("ref_range")),
            )
        profiles[name] = profile
    log.debug("loaded %d order profiles", len(profiles))
    return OrderProfiles(profiles)


def load_order_profiles(path: str | Path | None, config: HL7Config) -> OrderProfiles:
    p = Path(path) if path else DEFAULT_ORDER_PROFILES
    if not p.exists():
        raise ConfigError(f"order profiles not found: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as err:
        raise ConfigError(f"cannot parse order profiles {p}") from err
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"order profiles {p} must be a mapping of profile names")
    return order_profiles_from_dict(data or {}, config)
