"""HL7 message builders: ADT, ORU, ORM, ORR and MDM.

Every builder returns an HL7Message. A failure in any segment fails the whole message
with an EncodingError naming the segment; no partial message is produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from .config import HL7Config
from .errors import EncodingError
from .models import (
    ADT,
    MDM,
    ORM,
    ORR,
    ORU,
    Document,
    HeaderInfo,
    HL7Message,
    MessageType,
    NullTime,
    Order,
    PatientInfo,
    Result,
)
from .segments import SegmentBuilder

log = logging.getLogger(__name__)

ORU_EVENTS = ("R01", "R03", "R32")


@dataclass(frozen=True)
class ADTPlan:
    """Segments of one ADT event, after MSH and EVN.

    ``planned`` and ``occurred`` name the PatientInfo dates sent in EVN-3 and EVN-6.
    """

    segments: Tuple[str, ...]
    planned: str = ""
    occurred: str = ""


ADT_PLANS: Dict[str, ADTPlan] = {
    "A01": ADTPlan(("PID", "PD1", "PV1", "NK1*", "AL1*")),
    "A02": ADTPlan(("PID", "PD1", "PV1")),
    "A03": ADTPlan(("PID", "PD1", "PV1", "AL1*")),
    "A04": ADTPlan(("PID", "PD1", "PV1", "NK1*", "AL1*")),
    "A05": ADTPlan(
        ("PID", "PD1", "PV1", "PV2", "AL1*", "NK1*", "DG1*"),
        planned="expected_admit_datetime",
    ),
    "A08": ADTPlan(("PID", "PSEUDO_PV1", "AL1*", "DG1*", "PR1*")),
    "A09": ADTPlan(("PID", "PD1", "PV1")),
    "A10": ADTPlan(("PID", "PD1", "PV1")),
    "A11": ADTPlan(("PID", "PD1", "PV1"), occurred="admission_date"),
    "A12": ADTPlan(("PID", "PD1", "PV1"), occurred="transfer_date"),
    "A13": ADTPlan(("PID", "PD1", "PV1"), occurred="discharge_date"),
    "A14": ADTPlan(("PID", "PD1", "PV1", "PV2"), planned="expected_admit_datetime"),
    "A15": ADTPlan(("PID", "PD1", "PV1"), planned="expected_transfer_datetime"),
    "A16": ADTPlan(("PID", "PD1", "PV1", "PV2"), planned="expected_discharge_datetime"),
    "A17": ADTPlan(("PID", "PD1", "PV1", "OTHER_PID", "PD1", "OTHER_PV1")),
    "A23": ADTPlan(("PID", "PV1")),
    "A25": ADTPlan(("PID", "PD1", "PV1", "PV2"), occurred="expected_discharge_datetime"),
    "A26": ADTPlan(("PID", "PD1", "PV1", "PV2"), occurred="expected_transfer_datetime"),
    "A27": ADTPlan(("PID", "PD1", "PV1", "PV2"), occurred="expected_admit_datetime"),
    "A28": ADTPlan(("PID", "PD1", "PSEUDO_PV1", "AL1*")),
    "A31": ADTPlan(("PID", "PSEUDO_PV1", "AL1*", "DG1*", "PR1*")),
    "A34": ADTPlan(("PID", "PD1", "MRG")),
    "A40": ADTPlan(("PID", "PD1", "MRG", "PV1")),
}


@dataclass
class _Segments:
    """Collects rendered segments, wrapping any failure with the segment name."""

    parts: List[str] = field(default_factory=list)

    def add(self, name: str, build: Callable[..., str], *args) -> None:
        try:
            self.parts.append(build(*args))
        except Exception as err:
            raise EncodingError(f"cannot build {name} segment") from err


class MessageBuilder:
    def __init__(self, config: HL7Config):
        self.config = config
        self.segments = SegmentBuilder(config)

    def _message(self, msg_type: MessageType, segs: _Segments) -> HL7Message:
        log.debug("built %s with %d segments", msg_type, len(segs.parts))
        return HL7Message(
            type=msg_type,
            message=self.config.encoding.segment_terminator.join(segs.parts),
        )

    # ---- ADT ------------------------------------------------------------------

    def adt(
        self,
        trigger_event: str,
        header: HeaderInfo,
        patient: PatientInfo,
        event_time: datetime,
        msg_time: datetime,
        *,
        other_patient: Optional[PatientInfo] = None,
        merge_mrns: Optional[List[str]] = None,
    ) -> HL7Message:
        """ADT^<trigger_event>.

        A17 (bed swap) needs ``other_patient``; A34 and A40 (merges) need ``merge_mrns``,
        the MRNs merged into ``patient``.
        """
        plan = ADT_PLANS.get(trigger_event)
        if plan is None:
            raise EncodingError(f"unsupported ADT trigger event {trigger_event!r}")
        if "OTHER_PID" in plan.segments and other_patient is None:
            raise EncodingError(f"ADT^{trigger_event} needs a second patient")
        if "MRG" in plan.segments and not merge_mrns:
            raise EncodingError(f"ADT^{trigger_event} needs the MRNs to merge")

        msg_type = MessageType(ADT, trigger_event)
        sb = self.segments
        planned = getattr(patient, plan.planned) if plan.planned else NullTime.invalid()
        occurred = getattr(patient, plan.occurred) if plan.occurred else NullTime.invalid()

        segs = _Segments()
        segs.add("MSH", sb.msh, header, msg_type, msg_time)
        segs.add("EVN", sb.evn, trigger_event, event_time, planned, patient.attending_doctor, occurred)
        for step in plan.segments:
            if step == "PID":
                segs.add("PID", sb.pid, patient.person)
            elif step == "PD1":
                segs.add("PD1", sb.pd1, patient)
            elif step == "PV1":
                segs.add("PV1", sb.pv1, patient)
            elif step == "PSEUDO_PV1":
                segs.add("PV1", sb.pseudo_pv1)
            elif step == "PV2":
                segs.add("PV2", sb.pv2, patient)
            elif step == "OTHER_PID":
                segs.add("PID", sb.pid, other_patient.person)
            elif step == "OTHER_PV1":
                segs.add("PV1", sb.pv1, other_patient)
            elif step == "MRG":
                segs.add("MRG", sb.mrg, merge_mrns)
            elif step == "NK1*":
                for i, party in enumerate(patient.associated_parties):
                    segs.add("NK1", sb.nk1, i, party)
            elif step == "AL1*":
                for i, allergy in enumerate(patient.allergies):
                    segs.add("AL1", sb.al1, i, allergy)
            elif step == "DG1*":
                for i, diagnosis in enumerate(patient.diagnoses):
                    segs.add("DG1", sb.dg1, i, diagnosis)
            elif step == "PR1*":
                for i, procedure in enumerate(patient.procedures):
                    segs.add("PR1", sb.pr1, i, procedure)
        return self._message(msg_type, segs)

    # ---- orders and results ---------------------------------------------------

    def _order_segments(
        self, msg_type: MessageType, header: HeaderInfo, patient: PatientInfo, order: Order, msg_time: datetime
    ) -> _Segments:
        sb = self.segments
        segs = _Segments()
        segs.add("MSH", sb.msh, header, msg_type, msg_time)
        segs.add("PID", sb.pid, patient.person)
        segs.add("PV1", sb.pv1, patient)
        segs.add("ORC", sb.orc, order)
        segs.add("OBR", sb.obr, order)
        return segs

    def _result_segments(self, segs: _Segments, set_id: int, result: Result) -> None:
        segs.add("OBX", self.segments.obx, set_id, result)
        for i, note in enumerate(result.notes):
            segs.add("NTE", self.segments.nte, i, note)

    def oru(
        self,
        trigger_event: str,
        header: HeaderInfo,
        patient: PatientInfo,
        order: Order,
        msg_time: datetime,
    ) -> HL7Message:
        """ORU^R01, ORU^R03 or ORU^R32.

        Results of an order carrying a clinical note render one OBX per note content.
        Ordinary results continue the OBX set IDs after the results already sent.
        """
        if trigger_event not in ORU_EVENTS:
            raise EncodingError(f"unsupported ORU trigger event {trigger_event!r}")
        msg_type = MessageType(ORU, trigger_event)
        segs = self._order_segments(msg_type, header, patient, order, msg_time)

        if order.is_clinical_note:
            for result in order.results:
                note = result.clinical_note
                if note is None:
                    raise EncodingError("cannot build OBX segment: result without clinical note")
                for i, content in enumerate(note.contents):
                    segs.add(
                        "OBX", self.segments.obx_clinical_note,
                        i + 1, result, note, content, order.ordering_provider,
                    )
        else:
            for i, result in enumerate(order.results):
                self._result_segments(segs, order.number_of_previous_results + i + 1, result)
        return self._message(msg_type, segs)

    def orm_o01(self, header: HeaderInfo, patient: PatientInfo, order: Order, msg_time: datetime) -> HL7Message:
        msg_type = MessageType(ORM, "O01")
        segs = self._order_segments(msg_type, header, patient, order, msg_time)
        for i, note in enumerate(order.notes_for_orm):
            segs.add("NTE", self.segments.nte, i, note)
        for i, result in enumerate(order.results_for_orm):
            self._result_segments(segs, i + 1, result)
        return self._message(msg_type, segs)

    def orr_o02(self, header: HeaderInfo, patient: PatientInfo, order: Order, msg_time: datetime) -> HL7Message:
        """Order acknowledgement; MSA echoes the control ID of the ORM that placed the order."""
        msg_type = MessageType(ORR, "O02")
        sb = self.segments
        segs = _Segments()
        segs.add("MSH", sb.msh, header, msg_type, msg_time)
        segs.add("MSA", sb.msa, order.message_control_id_original_order)
        segs.add("PID", sb.pid, patient.person)
        segs.add("ORC", sb.orc, order)
        return self._message(msg_type, segs)

    # ---- documents ------------------------------------------------------------

    def mdm_t02(
        self,
        header: HeaderInfo,
        patient: PatientInfo,
        document: Document,
        event_time: datetime,
        msg_time: datetime,
    ) -> HL7Message:
        msg_type = MessageType(MDM, "T02")
        sb = self.segments
        segs = _Segments()
        segs.add("MSH", sb.msh, header, msg_type, msg_time)
        segs.add("EVN", sb.evn, msg_type.trigger_event, event_time, None, patient.attending_doctor, None)
        segs.add("PID", sb.pid, patient.person)
        segs.add("PV1", sb.pv1, patient)
        segs.add("TXA", sb.txa, document, patient.attending_doctor)
        for i, line in enumerate(document.content_line):
            segs.add("OBX", sb.obx_document, i + 1, document, line)
        return self._message(msg_type, segs)
