"""Data models for synthetic order generation and HL7 encoding."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timedelta
from typing import Any, List, Optional

# Diagnostic Serv Sect ID (OBR.24) marking an order that carries a clinical document.
DIAGNOSTIC_SERV_ID_MDOC = "MDOC"

ADT = "ADT"
ORM = "ORM"
ORR = "ORR"
ORU = "ORU"
MDM = "MDM"


@dataclass(frozen=True)
class NullTime:
    """A timestamp that may be absent.

    Build it with one of the constructors: ``NullTime.invalid()`` (renders empty),
    ``NullTime.valid_time(t)`` or ``NullTime.midnight_time(t)`` (renders as local
    midnight of the day ``t`` falls on in the HL7 time zone).
    """

    time: Optional[datetime] = None
    valid: bool = False
    midnight: bool = False

    @classmethod
    def invalid(cls) -> NullTime:
        return cls()

    @classmethod
    def valid_time(cls, t: datetime) -> NullTime:
        return cls(time=t, valid=True)

    @classmethod
    def midnight_time(cls, t: datetime) -> NullTime:
        return cls(time=t, valid=True, midnight=True)

    def add(self, delta: timedelta) -> NullTime:
        """Shift a valid time. The result is never midnight-tagged; invalid times stay invalid."""
        if not self.valid:
            return self
        return NullTime.valid_time(self.time + delta)


@dataclass(frozen=True)
class CodedElement:
    id: str = ""
    text: str = ""
    coding_system: str = ""
    alternate_text: str = ""


@dataclass
class Doctor:
    id: str = ""
    surname: str = ""
    first_name: str = ""
    prefix: str = ""
    specialty: str = ""  # not rendered


@dataclass
class Address:
    first_line: str = ""
    second_line: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""
    type: str = ""  # HOME / WORK


@dataclass
class Person:
    prefix: str = ""
    first_name: str = ""
    middle_name: str = ""
    surname: str = ""
    suffix: str = ""
    degree: str = ""
    gender: str = ""
    ethnicity: Optional[CodedElement] = None
    birth: NullTime = field(default_factory=NullTime.invalid)
    date_of_death: NullTime = field(default_factory=NullTime.invalid)
    address: Optional[Address] = None
    phone_number: str = ""
    mrn: str = ""
    nhs: str = ""
    death_indicator: str = ""


@dataclass
class AssociatedParty(Person):
    """A next of kin or other contact of a patient."""

    relationship: Optional[CodedElement] = None
    contact_role: Optional[CodedElement] = None


@dataclass
class PatientLocation:
    poc: str = ""
    room: str = ""
    bed: str = ""
    facility: str = ""
    location_type: str = ""
    building: str = ""
    floor: str = ""


@dataclass
class Allergy:
    type: str = ""
    description: CodedElement = field(default_factory=CodedElement)
    severity: str = ""
    reaction: str = ""
    identification_datetime: NullTime = field(default_factory=NullTime.invalid)


@dataclass
class DiagnosisOrProcedure:
    description: Optional[CodedElement] = None
    type: str = ""
    clinician: Optional[Doctor] = None
    datetime: NullTime = field(default_factory=NullTime.invalid)


@dataclass
class PrimaryFacility:
    organization: str = ""
    id: str = ""  # XON.3; kept as a string so an absent ID renders empty, not 0


@dataclass
class PatientInfo:
    person: Optional[Person] = None
    patient_class: str = ""  # EMERGENCY / INPATIENT / OUTPATIENT / ...
    type: str = ""
    visit_id: int = 0
    hospital_service: str = ""
    location: Optional[PatientLocation] = None
    prior_location: Optional[PatientLocation] = None
    pending_location: Optional[PatientLocation] = None
    prior_pending_location: Optional[PatientLocation] = None
    temporary_location: Optional[PatientLocation] = None
    prior_temporary_location: Optional[PatientLocation] = None
    attending_doctor: Optional[Doctor] = None
    account_status: str = ""
    admission_date: NullTime = field(default_factory=NullTime.invalid)
    discharge_date: NullTime = field(default_factory=NullTime.invalid)
    transfer_date: NullTime = field(default_factory=NullTime.invalid)
    expected_admit_datetime: NullTime = field(default_factory=NullTime.invalid)
    expected_discharge_datetime: NullTime = field(default_factory=NullTime.invalid)
    expected_transfer_datetime: NullTime = field(default_factory=NullTime.invalid)
    associated_parties: List[AssociatedParty] = field(default_factory=list)
    allergies: List[Allergy] = field(default_factory=list)
    diagnoses: List[DiagnosisOrProcedure] = field(default_factory=list)
    procedures: List[DiagnosisOrProcedure] = field(default_factory=list)
    primary_facility: Optional[PrimaryFacility] = None


@dataclass
class HeaderInfo:
    sending_application: str = ""
    sending_facility: str = ""
    receiving_application: str = ""
    receiving_facility: str = ""
    message_control_id: str = ""


@dataclass
class ClinicalNoteContent:
    # Set when this revision is generated; may differ from ClinicalNote.datetime.
    observation_datetime: NullTime = field(default_factory=NullTime.invalid)
    content_type: str = ""
    document_encoding: str = ""
    document_content: str = ""


@dataclass
class ClinicalNote:
    datetime: NullTime = field(default_factory=NullTime.invalid)
    document_title: str = ""
    document_type: str = ""
    document_id: str = ""
    contents: List[ClinicalNoteContent] = field(default_factory=list)


@dataclass
class Result:
    test_name: Optional[CodedElement] = None
    value: str = ""
    unit: str = ""
    value_type: str = ""  # NM / TX / CE / ""
    range: str = ""
    abnormal_flag: str = ""
    observation_datetime: NullTime = field(default_factory=NullTime.invalid)
    status: str = ""
    notes: List[str] = field(default_factory=list)
    clinical_note: Optional[ClinicalNote] = None


@dataclass
class Order:
    order_profile: Optional[CodedElement] = None
    placer: str = ""
    filler: str = ""
    order_datetime: NullTime = field(default_factory=NullTime.invalid)
    collected_datetime: NullTime = field(default_factory=NullTime.invalid)
    received_in_lab_datetime: NullTime = field(default_factory=NullTime.invalid)
    reported_datetime: NullTime = field(default_factory=NullTime.invalid)
    order_control: str = ""
    # Message control ID of the ORM that created the order; echoed in ORR^O02 MSA.
    message_control_id_original_order: str = ""
    order_status: str = ""
    results_status: str = ""
    results: List[Result] = field(default_factory=list)
    # Not clinically relevant, e.g. "OBX|3|CD|PERSONUKRES||Yes".
    results_for_orm: List[Result] = field(default_factory=list)
    # Order-level notes, sent before the OBX segments of an ORM.
    notes_for_orm: List[str] = field(default_factory=list)
    ordering_provider: Optional[Doctor] = None
    specimen_source: str = ""
    diagnostic_serv_id: str = ""
    # Results already sent for this order, so amendments continue the OBX set IDs.
    number_of_previous_results: int = 0

    @property
    def is_clinical_note(self) -> bool:
        return self.diagnostic_serv_id == DIAGNOSTIC_SERV_ID_MDOC


@dataclass
class Document:
    """A generic document for the TXA and OBX segments of an MDM message."""

    activity_datetime: NullTime = field(default_factory=NullTime.invalid)
    edit_datetime: NullTime = field(default_factory=NullTime.invalid)
    document_type: str = ""
    document_completion_status: str = ""
    unique_document_number: str = ""
    observation_identifier: Optional[CodedElement] = None
    # One OBX per line.
    content_line: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MessageType:
    message_type: str
    trigger_event: str

    def __str__(self) -> str:
        return f"{self.message_type}^{self.trigger_event}"


@dataclass
class HL7Message:
    type: MessageType
    message: str


def is_present(value: Any) -> bool:
    """True when a value should be rendered: not None, not empty, not all-empty fields."""
    if value is None:
        return False
    if is_dataclass(value) and not isinstance(value, type):
        return any(is_present(getattr(value, f.name)) for f in fields(value))
    if isinstance(value, bool):
        return value
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    if isinstance(value, (int, float)):
        return value != 0
    return True
