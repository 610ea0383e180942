"""Protocols for the collaborators the order generator is built with."""

from __future__ import annotations

import random
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import ClinicalNote, Doctor
    from .orderprofile import OrderProfile
    from .pathway import ClinicalNoteRequest


@runtime_checkable
class OrderProfileLookup(Protocol):
    """Reference data for order profiles and the test types they contain."""

    def resolve(self, name: str) -> Optional[OrderProfile]:
        """The profile called ``name``, or None when there is no such profile."""
        ...

    def random(self, rng: random.Random) -> OrderProfile:
        """Any one of the known profiles."""
        ...


@runtime_checkable
class DoctorRegistry(Protocol):
    def random(self, rng: random.Random) -> Doctor:
        ...

    def lookup(self, doctor_id: str) -> Optional[Doctor]:
        ...


@runtime_checkable
class NoteGenerator(Protocol):
    """Source of free text: result notes and clinical documents."""

    def random_notes_for_result(self) -> List[str]:
        """Notes to attach to a result when the request does not give any."""
        ...

    def random_document_for_clinical_note(
        self,
        request: ClinicalNoteRequest,
        existing: Optional[ClinicalNote],
        t: datetime,
    ) -> ClinicalNote:
        """A new clinical note, or a new revision of ``existing``.

        A revision keeps the contents of ``existing`` and appends the new one.
        Implementations must not modify ``existing``.
        """
        ...


@runtime_checkable
class IDGenerator(Protocol):
    def new_id(self) -> str:
        ...


@runtime_checkable
class Clock(Protocol):
    def __call__(self) -> datetime:
        """Current time, timezone aware in UTC."""
        ...
