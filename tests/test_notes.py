"""Tests for the Faker backed note generator."""

import base64
import random
from datetime import datetime, timedelta, timezone

import pytest
from faker import Faker

from labsim.models import NullTime
from labsim.notes import ENCODING_BASE64, FakerNoteGenerator
from labsim.pathway import ClinicalNoteRequest
from labsim.utils import SequenceIDGenerator

T = datetime(2020, 2, 12, 1, 30, tzinfo=timezone.utc)


@pytest.fixture
def gen():
    fake = Faker("en_GB")
    fake.seed_instance(5)
    return FakerNoteGenerator(fake=fake, rng=random.Random(5), id_generator=SequenceIDGenerator())


class TestResultNotes:
    def test_never(self):
        gen = FakerNoteGenerator(rng=random.Random(1), note_probability=0.0)
        assert all(gen.random_notes_for_result() == [] for _ in range(20))

    def test_always(self):
        gen = FakerNoteGenerator(rng=random.Random(1), note_probability=1.0, max_notes=3)
        for _ in range(20):
            notes = gen.random_notes_for_result()
            assert 1 <= len(notes) <= 3
            assert all(isinstance(n, str) and n for n in notes)


class TestClinicalNote:
    def test_new_note(self, gen):
        note = gen.random_document_for_clinical_note(
            ClinicalNoteRequest(content_type="txt", document_type="DS"), None, T
        )
        assert note.document_type == "DS"
        assert note.document_title == "Discharge Summary"
        assert note.document_id == "1"
        assert note.datetime == NullTime.valid_time(T)
        assert len(note.contents) == 1
        content = note.contents[0]
        assert content.content_type == "txt"
        assert content.document_encoding == ""
        assert content.document_content
        assert content.observation_datetime == NullTime.valid_time(T)

    def test_requested_identity(self, gen):
        note = gen.random_document_for_clinical_note(
            ClinicalNoteRequest(document_id="abc", document_title="My title", document_type="XX"), None, T
        )
        assert note.document_id == "abc"
        assert note.document_title == "My title"
        assert note.document_type == "XX"

    @pytest.mark.parametrize("ctype,marker", [("rtf", "{\\rtf1"), ("html", "<html>")])
    def test_encoded_contents(self, gen, ctype, marker):
        note = gen.random_document_for_clinical_note(ClinicalNoteRequest(content_type=ctype), None, T)
        content = note.contents[0]
        assert content.document_encoding == ENCODING_BASE64
        assert base64.b64decode(content.document_content).decode("utf-8").startswith(marker)

    def test_unknown_content_type_falls_back_to_text(self, gen):
        note = gen.random_document_for_clinical_note(ClinicalNoteRequest(content_type="pdf"), None, T)
        assert note.contents[0].content_type == "txt"

    def test_revision_appends(self, gen):
        first = gen.random_document_for_clinical_note(ClinicalNoteRequest(content_type="txt"), None, T)
        later = T + timedelta(hours=1)
        second = gen.random_document_for_clinical_note(
            ClinicalNoteRequest(content_type="html", document_title="Updated"), first, later
        )
        assert second.document_id == first.document_id
        assert second.document_title == "Updated"
        assert second.contents[0] == first.contents[0]
        assert second.contents[1].observation_datetime == NullTime.valid_time(later)
        assert len(first.contents) == 1
