"""Registry of doctors, loaded from a YAML list."""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config import CONFIG_DIR
from .errors import ConfigError
from .models import Doctor

log = logging.getLogger(__name__)

DEFAULT_DOCTORS = CONFIG_DIR / "doctors.yml"


class Doctors:
    def __init__(self, doctors: Optional[List[Doctor]] = None):
        self._by_id: Dict[str, Doctor] = {}
        self._order: List[str] = []
        for d in doctors or []:
            self.add(d)

    def add(self, doctor: Doctor) -> None:
        """Register a doctor; a doctor with the same ID is replaced."""
        if doctor.id not in self._by_id:
            self._order.append(doctor.id)
        self._by_id[doctor.id] = doctor

    def lookup(self, doctor_id: str) -> Optional[Doctor]:
        return self._by_id.get(doctor_id)

    def random(self, rng: random.Random) -> Doctor:
        if not self._order:
            raise ConfigError("no doctors loaded")
        return self._by_id[rng.choice(self._order)]

    def __len__(self) -> int:
        return len(self._order)


def _doctor(raw: Dict[str, Any]) -> Doctor:
    if not raw.get("id"):
        raise ConfigError(f"doctor without id: {raw!r}")
    return Doctor(
        id=str(raw["id"]),
        surname=str(raw.get("surname") or ""),
        first_name=str(raw.get("firstname") or ""),
        prefix=str(raw.get("prefix") or ""),
        specialty=str(raw.get("specialty") or ""),
    )


def load_doctors(path: str | Path | None = None) -> Doctors:
    p = Path(path) if path else DEFAULT_DOCTORS
    if not p.exists():
        raise ConfigError(f"doctors file not found: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or []
    except yaml.YAMLError as err:
        raise ConfigError(f"cannot parse doctors file {p}") from err
    if not isinstance(data, list):
        raise ConfigError(f"doctors file {p} must hold a list")
    doctors = Doctors([_doctor(d) for d in data])
    log.debug("loaded %d doctors from %s", len(doctors), p)
    return doctors
