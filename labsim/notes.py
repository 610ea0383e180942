"""Free text for results and clinical documents, made up with Faker."""

from __future__ import annotations

import base64
import copy
import logging
import random
from datetime import datetime
from typing import List, Optional, Tuple

from faker import Faker

from .interfaces import IDGenerator
from .models import ClinicalNote, ClinicalNoteContent, NullTime
from .pathway import ClinicalNoteRequest

log = logging.getLogger(__name__)

CONTENT_TXT = "txt"
CONTENT_RTF = "rtf"
CONTENT_HTML = "html"
CONTENT_TYPES = (CONTENT_TXT, CONTENT_RTF, CONTENT_HTML)

ENCODING_BASE64 = "Base64"

# (document type, default title)
DOCUMENT_TYPES: List[Tuple[str, str]] = [
    ("DS", "Discharge Summary"),
    ("CN", "Consultation Note"),
    ("PN", "Progress Note"),
    ("RAD", "Radiology Report"),
    ("OP", "Operative Note"),
]


class FakerNoteGenerator:
    """Notes for results, and clinical documents with append-only revisions.

    ``note_probability`` is the chance a result gets notes at all; when it does it gets
    between one and ``max_notes`` sentences.
    """

    def __init__(
        self,
        fake: Optional[Faker] = None,
        rng: Optional[random.Random] = None,
        id_generator: Optional[IDGenerator] = None,
        note_probability: float = 0.2,
        max_notes: int = 2,
        paragraphs: int = 3,
        document_types: Optional[List[Tuple[str, str]]] = None,
    ):
        self.fake = fake or Faker("en_GB")
        self.rng = rng or random.Random()
        self.id_generator = id_generator
        self.note_probability = note_probability
        self.max_notes = max_notes
        self.paragraphs = paragraphs
        self.document_types = document_types or DOCUMENT_TYPES

    def random_notes_for_result(self) -> List[str]:
        if self.max_notes < 1 or self.rng.random() >= self.note_probability:
            return []
        return [self.fake.sentence() for _ in range(self.rng.randint(1, self.max_notes))]

    def random_document_for_clinical_note(
        self,
        request: ClinicalNoteRequest,
        existing: Optional[ClinicalNote],
        t: datetime,
    ) -> ClinicalNote:
        content = self._content(request.content_type, t)

        if existing is not None:
            note = copy.deepcopy(existing)
            if request.document_type:
                note.document_type = request.document_type
            if request.document_title:
                note.document_title = request.document_title
            note.contents.append(content)
            log.debug("added revision %d to document %s", len(note.contents), note.document_id)
            return note

        doc_type, title = self.rng.choice(self.document_types)
        if request.document_type:
            doc_type = request.document_type
            title = dict(self.document_types).get(doc_type, doc_type)
        return ClinicalNote(
            datetime=NullTime.valid_time(t),
            document_title=request.document_title or title,
            document_type=doc_type,
            document_id=request.document_id or self._new_document_id(),
            contents=[content],
        )

    def _new_document_id(self) -> str:
        if self.id_generator is not None:
            return self.id_generator.new_id()
        return self.fake.uuid4()

    def _content(self, content_type: str, t: datetime) -> ClinicalNoteContent:
        ctype = (content_type or self.rng.choice(CONTENT_TYPES)).lower()
        if ctype not in CONTENT_TYPES:
            log.warning("unknown content type %r, using %s", content_type, CONTENT_TXT)
            ctype = CONTENT_TXT

        paragraphs = self.fake.paragraphs(nb=self.paragraphs)
        if ctype == CONTENT_TXT:
            body, encoding = "\n".join(paragraphs), ""
        elif ctype == CONTENT_RTF:
            rtf = "{\\rtf1\\ansi\\deff0 " + "\\par ".join(paragraphs) + "}"
            body, encoding = _b64(rtf), ENCODING_BASE64
        else:
            html = "<html><body>" + "".join(f"<p>{p}</p>" for p in paragraphs) + "</body></html>"
            body, encoding = _b64(html), ENCODING_BASE64

        return ClinicalNoteContent(
            observation_datetime=NullTime.valid_time(t),
            content_type=ctype,
            document_encoding=encoding,
            document_content=body,
        )


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")
