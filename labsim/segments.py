"""HL7 segment builders.

Each segment is described as a mapping of HL7 field number to rendered text and a
segment size; missing fields render empty. Composite fields (locations, doctors,
coded elements, ...) render only when the value they come from is present, so an
absent object leaves one empty field instead of a run of empty components.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from .config import HL7Config
from .models import (
    Address,
    Allergy,
    AssociatedParty,
    ClinicalNote,
    ClinicalNoteContent,
    CodedElement,
    DiagnosisOrProcedure,
    Doctor,
    Document,
    HeaderInfo,
    MessageType,
    NullTime,
    Order,
    PatientInfo,
    PatientLocation,
    Person,
    PrimaryFacility,
    Result,
    is_present,
)
from .utils import hl7_escape, hl7_repeated, ts_hl7

Fields = Dict[int, str]

VALUE_TYPE_CE = "CE"


class SegmentBuilder:
    def __init__(self, config: HL7Config):
        self.config = config
        self.enc = config.encoding
        self.tz = config.location

    # ---- field helpers --------------------------------------------------------

    def render(self, name: str, fields: Fields, size: int) -> str:
        values = [fields.get(i, "") for i in range(1, size + 1)]
        return self.enc.field.join([name, *values])

    def esc(self, value: Optional[str]) -> str:
        return hl7_escape(value, self.enc)

    def date(self, nt: Optional[NullTime]) -> str:
        return ts_hl7(nt, self.tz)

    def components(self, *parts: str) -> str:
        return self.enc.component.join(parts)

    def repeated(self, values: List[str]) -> str:
        return hl7_repeated(values, self.enc)

    def ce(self, c: Optional[CodedElement]) -> str:
        if not is_present(c):
            return ""
        return self.components(self.esc(c.id), self.esc(c.text), c.coding_system, "", self.esc(c.alternate_text))

    def location(self, loc: Optional[PatientLocation]) -> str:
        if not is_present(loc):
            return ""
        return self.components(
            loc.poc, loc.room, loc.bed, loc.facility, "", loc.location_type, loc.building, loc.floor
        )

    def doctor(self, d: Optional[Doctor]) -> str:
        if not is_present(d):
            return ""
        return self.components(
            d.id, self.esc(d.surname), self.esc(d.first_name), "", "", d.prefix,
            "", "", "DRNBR", "PRSNL", "", "", "ORGDR",
        )

    def person_name(self, p: Optional[Person]) -> str:
        if not is_present(p):
            return ""
        return self.components(
            self.esc(p.surname), self.esc(p.first_name), self.esc(p.middle_name),
            p.suffix, p.prefix, p.degree, "CURRENT",
        )

    def address(self, a: Optional[Address]) -> str:
        if not is_present(a):
            return ""
        return self.components(
            self.esc(a.first_line), self.esc(a.second_line), self.esc(a.city), "",
            a.postal_code, self.esc(a.country), a.type,
        )

    def home_phone(self, number: str) -> str:
        return self.components(number, "HOME") if number else ""

    def cx_mrn(self, mrn: str) -> str:
        return self.components(mrn, "", "", self.config.mrn_assigning_authority, "MRN")

    def cx_visit(self, visit_id: int) -> str:
        return self.components(str(visit_id), "", "", "", "visitid") if visit_id else ""

    def primary_facility(self, pf: Optional[PrimaryFacility]) -> str:
        if not is_present(pf):
            return ""
        return self.components(self.esc(pf.organization), "", pf.id)

    # ---- segments -------------------------------------------------------------

    def msh(self, header: HeaderInfo, msg_type: MessageType, t: datetime) -> str:
        fields = {
            3: header.sending_application,
            4: header.sending_facility,
            5: header.receiving_application,
            6: header.receiving_facility,
            7: self.date(NullTime.valid_time(t)),
            9: str(msg_type),
            10: header.message_control_id,
            11: self.config.processing_id,
            12: self.config.version,
            15: "AL",
            17: "44",
            18: "ASCII",
        }
        # MSH-1 is the field separator itself, MSH-2 the encoding characters.
        values = [self.enc.encoding_characters] + [fields.get(i, "") for i in range(3, 19)]
        return self.enc.field.join(["MSH", *values])

    def msa(self, original_control_id: str) -> str:
        return self.render("MSA", {1: "AA", 2: original_control_id}, 2)

    def evn(
        self,
        trigger_event: str,
        t: datetime,
        planned: Optional[NullTime] = None,
        operator: Optional[Doctor] = None,
        occurred: Optional[NullTime] = None,
    ) -> str:
        return self.render(
            "EVN",
            {
                1: trigger_event,
                2: self.date(NullTime.valid_time(t)),
                3: self.date(planned),
                5: self.doctor(operator),
                6: self.date(occurred),
            },
            6,
        )

    def pid(self, p: Person) -> str:
        nhs = self.components(p.nhs, "", "", "NHSNBR", "NHSNMBR")
        return self.render(
            "PID",
            {
                1: "1",
                2: self.cx_mrn(p.mrn),
                3: self.repeated([self.cx_mrn(p.mrn), nhs]),
                5: self.person_name(p),
                7: self.date(p.birth),
                8: p.gender,
                11: self.address(p.address),
                13: self.home_phone(p.phone_number),
                22: self.ce(p.ethnicity),
                29: self.date(p.date_of_death),
                30: p.death_indicator,
            },
            30,
        )

    def pd1(self, patient: PatientInfo) -> str:
        return self.render("PD1", {3: self.primary_facility(patient.primary_facility)}, 4)

    def pv1(self, patient: PatientInfo) -> str:
        return self.render(
            "PV1",
            {
                1: "1",
                2: patient.patient_class,
                3: self.location(patient.location),
                4: "28b",
                6: self.location(patient.prior_location),
                7: self.doctor(patient.attending_doctor),
                10: patient.hospital_service,
                11: self.location(patient.temporary_location),
                18: patient.type,
                19: self.cx_visit(patient.visit_id),
                41: patient.account_status,
                42: self.location(patient.pending_location),
                43: self.location(patient.prior_temporary_location),
                44: self.date(patient.admission_date),
                45: self.date(patient.discharge_date),
            },
            46,
        )

    def pseudo_pv1(self) -> str:
        """Visit segment for messages about a patient rather than a visit."""
        return self.render("PV1", {1: "1", 2: "N"}, 3)

    def pv2(self, patient: PatientInfo) -> str:
        return self.render(
            "PV2",
            {
                1: self.location(patient.prior_pending_location),
                8: self.date(patient.expected_admit_datetime),
                9: self.date(patient.expected_discharge_datetime),
            },
            9,
        )

    def nk1(self, set_id: int, party: AssociatedParty) -> str:
        return self.render(
            "NK1",
            {
                1: str(set_id),
                2: self.person_name(party),
                3: self.ce(party.relationship),
                4: self.address(party.address),
                5: self.home_phone(party.phone_number),
                7: self.ce(party.contact_role),
                15: party.gender,
            },
            16,
        )

    def al1(self, set_id: int, allergy: Allergy) -> str:
        return self.render(
            "AL1",
            {
                1: str(set_id),
                2: allergy.type,
                3: self.ce(allergy.description),
                4: allergy.severity,
                5: self.esc(allergy.reaction),
                6: self.date(allergy.identification_datetime),
            },
            6,
        )

    def dg1(self, set_id: int, diagnosis: DiagnosisOrProcedure) -> str:
        text = diagnosis.description.text if diagnosis.description else ""
        return self.render(
            "DG1",
            {
                1: str(set_id),
                2: "SNMCT",
                3: self.ce(diagnosis.description),
                4: self.esc(text),
                5: self.date(diagnosis.datetime),
                6: diagnosis.type,
                15: "0",
                16: self.doctor(diagnosis.clinician),
            },
            16,
        )

    def pr1(self, set_id: int, procedure: DiagnosisOrProcedure) -> str:
        text = procedure.description.text if procedure.description else ""
        return self.render(
            "PR1",
            {
                1: str(set_id),
                2: "SNMCT",
                3: self.ce(procedure.description),
                4: self.esc(text),
                5: self.date(procedure.datetime),
                6: procedure.type,
                12: self.doctor(procedure.clinician),
                14: "0",
            },
            16,
        )

    def mrg(self, mrns: List[str]) -> str:
        return self.render("MRG", {1: self.repeated([self.cx_mrn(m) for m in mrns])}, 2)

    def orc(self, order: Order) -> str:
        return self.render(
            "ORC",
            {
                1: order.order_control,
                2: order.placer,
                3: order.filler,
                5: order.order_status,
                9: self.date(order.order_datetime),
            },
            9,
        )

    def obr(self, order: Order) -> str:
        filler = order.filler
        if order.is_clinical_note:
            doc_id = order.results[0].clinical_note.document_id
            filler = self.repeated(
                [self.components(doc_id, "HNAM_CEREF"), self.components(doc_id, "HNAM_EVENTID")]
            )
        return self.render(
            "OBR",
            {
                1: "1",
                2: order.placer,
                3: filler,
                4: self.ce(order.order_profile),
                6: self.date(order.order_datetime),
                7: self.date(order.collected_datetime),
                14: self.date(order.received_in_lab_datetime),
                15: order.specimen_source,
                16: self.doctor(order.ordering_provider),
                22: self.date(order.reported_datetime),
                24: order.diagnostic_serv_id,
                25: order.results_status,
                27: "1",
            },
            27,
        )

    def obx_value(self, result: Result) -> str:
        """OBX-5. Each line of the value is one repetition; coded values are already in wire form."""
        if result.value_type == VALUE_TYPE_CE:
            return result.value
        if not result.value:
            return ""
        lines = result.value.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        return self.repeated([self.esc(line) for line in lines])

    def obx(self, set_id: int, result: Result) -> str:
        return self.render(
            "OBX",
            {
                1: str(set_id),
                2: result.value_type,
                3: self.ce(result.test_name),
                5: self.obx_value(result),
                6: self.esc(result.unit),
                7: self.esc(result.range),
                8: result.abnormal_flag,
                11: result.status,
                14: self.date(result.observation_datetime),
            },
            16,
        )

    def obx_clinical_note(
        self,
        set_id: int,
        result: Result,
        note: ClinicalNote,
        content: ClinicalNoteContent,
        ordering_provider: Optional[Doctor],
    ) -> str:
        return self.render(
            "OBX",
            {
                1: str(set_id),
                2: result.value_type,
                3: self.components(note.document_type, note.document_type) if note.document_type else "",
                5: self.components(
                    "", "", content.content_type, content.document_encoding, self.esc(content.document_content)
                ),
                14: self.date(result.observation_datetime),
                16: self.doctor(ordering_provider),
            },
            16,
        )

    def obx_document(self, set_id: int, document: Document, line: str) -> str:
        return self.render(
            "OBX",
            {
                1: str(set_id),
                2: "TX",
                3: self.ce(document.observation_identifier),
                4: "1",
                5: self.esc(line),
                11: "F",
            },
            17,
        )

    def nte(self, set_id: int, note: str) -> str:
        return self.render("NTE", {1: str(set_id), 3: self.esc(note)}, 4)

    def txa(self, document: Document, attending: Optional[Doctor]) -> str:
        return self.render(
            "TXA",
            {
                1: "1",
                2: document.document_type,
                4: self.date(document.activity_datetime),
                5: self.doctor(attending),
                8: self.date(document.edit_datetime),
                12: document.unique_document_number,
                17: document.document_completion_status,
            },
            23,
        )
