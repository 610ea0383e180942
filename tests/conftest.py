"""Shared fixtures: packaged config and reference data, fakes for the text and ID sources."""

import random
from datetime import datetime, timezone

import pytest

from labsim.config import load_hl7_config
from labsim.doctors import load_doctors
from labsim.generators import OrderGenerator
from labsim.models import ClinicalNote, ClinicalNoteContent, NullTime
from labsim.orderprofile import load_order_profiles
from labsim.utils import SequenceIDGenerator


class FakeNoteGenerator:
    """Returns fixed notes, and documents with one extra content per call."""

    def __init__(self, notes=None, error=None):
        self.notes = notes or []
        self.error = error
        self.calls = []

    def random_notes_for_result(self):
        return list(self.notes)

    def random_document_for_clinical_note(self, request, existing, t):
        self.calls.append((request, existing, t))
        if self.error is not None:
            raise self.error
        content = ClinicalNoteContent(
            observation_datetime=NullTime.valid_time(t),
            content_type=request.content_type or "txt",
            document_content=f"revision at {t.isoformat()}",
        )
        if existing is not None:
            existing.contents.append(content)
            return existing
        return ClinicalNote(
            datetime=NullTime.valid_time(t),
            document_title=request.document_title or "Discharge Summary",
            document_type=request.document_type or "DS",
            document_id=request.document_id or "doc-1",
            contents=[content],
        )


@pytest.fixture
def config():
    return load_hl7_config()


@pytest.fixture
def profiles(config):
    return load_order_profiles(None, config)


@pytest.fixture
def doctors():
    return load_doctors()


@pytest.fixture
def notes():
    return FakeNoteGenerator()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def now():
    return datetime(2020, 2, 12, 1, 30, tzinfo=timezone.utc)


@pytest.fixture
def generator(config, profiles, doctors, notes, rng, now):
    return OrderGenerator(
        config=config,
        order_profiles=profiles,
        doctors=doctors,
        note_generator=notes,
        id_generator=SequenceIDGenerator(),
        rng=rng,
        clock=lambda: now,
    )
