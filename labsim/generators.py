"""Order/result lifecycle: new orders, results for them and clinical note revisions.

The generator never modifies an order passed in; orders derived from a previous one
start from a deep copy of it.
"""

from __future__ import annotations

import copy
import logging
import random
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from . import ranges
from .config import HL7Config
from .errors import GenerationError, UnknownTestError, ValidationError
from .interfaces import Clock, DoctorRegistry, IDGenerator, NoteGenerator, OrderProfileLookup
from .models import DIAGNOSTIC_SERV_ID_MDOC, CodedElement, NullTime, Order, Result
from .orderprofile import OrderProfile, TestType
from .pathway import (
    ABNORMAL_FLAG_DEFAULT,
    ABNORMAL_FLAG_HIGH,
    ABNORMAL_FLAG_LOW,
    ABNORMAL_FLAG_NORMAL,
    ABNORMAL_HIGH,
    ABNORMAL_LOW,
    EMPTY,
    MIDNIGHT,
    NORMAL_VALUE,
    RANDOM,
    ClinicalNoteRequest,
    OrderRequest,
    ResultRequest,
    ResultsRequest,
)

log = logging.getLogger(__name__)

VALUE_TYPE_NM = "NM"
VALUE_TYPE_TX = "TX"
VALUE_TYPE_CE = "CE"

_ZONES = {
    NORMAL_VALUE: ranges.Zone.NORMAL,
    ABNORMAL_HIGH: ranges.Zone.ABNORMAL_HIGH,
    ABNORMAL_LOW: ranges.Zone.ABNORMAL_LOW,
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def infer_value_type(value: str, configured: str = "") -> str:
    """NM for numbers, TX for other text, "" for no value. A CE test always stays CE."""
    if configured == VALUE_TYPE_CE:
        return VALUE_TYPE_CE
    if value == "":
        return ""
    if ranges.parse_number(value) is not None:
        return VALUE_TYPE_NM
    return VALUE_TYPE_TX


class OrderGenerator:
    def __init__(
        self,
        config: HL7Config,
        order_profiles: OrderProfileLookup,
        doctors: DoctorRegistry,
        note_generator: NoteGenerator,
        id_generator: IDGenerator,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config
        self.order_profiles = order_profiles
        self.doctors = doctors
        self.note_generator = note_generator
        self.id_generator = id_generator
        self.rng = rng or random.Random()
        self.clock = clock or utc_now

    # ---- orders ---------------------------------------------------------------

    def new_order(self, request: OrderRequest, now: Optional[datetime] = None) -> Order:
        """An order that has been placed but has no results yet."""
        now = now or self.clock()
        identity, _ = self._resolve_profile(request.order_profile)
        order = Order(
            order_profile=identity,
            placer=self.id_generator.new_id(),
            order_datetime=NullTime.valid_time(now),
            order_control=self.config.order_control.new,
            order_status=request.order_status or self.config.order_status.in_process,
        )
        log.debug("new order %s for %s", order.placer, identity.text)
        return order

    def set_results(
        self,
        existing: Optional[Order],
        request: ResultsRequest,
        report_time: datetime,
    ) -> Order:
        """An order carrying the results in ``request``.

        With ``existing`` the results amend that order: its identity, placer and order
        date carry over and it gets a new filler. Results for other tests are kept and
        results for the same tests are replaced. Collected and received dates are
        always those of ``report_time`` unless EMPTY or MIDNIGHT is requested.

        Raises UnknownTestError for a test the (known) order profile does not define,
        and RangeError for a malformed reference range.
        """
        identity, profile = self._resolve_profile(request.order_profile)

        if existing is not None:
            order = copy.deepcopy(existing)
            if order.order_profile is None:
                order.order_profile = identity
        else:
            order = Order(
                order_profile=identity,
                placer=self.id_generator.new_id(),
                order_control=self.config.order_control.new,
            )
        order.filler = self.id_generator.new_id()

        order.order_datetime = (
            existing.order_datetime if existing is not None else NullTime.valid_time(report_time)
        )
        order.collected_datetime = _lab_datetime(request.collected_datetime, report_time)
        order.received_in_lab_datetime = _lab_datetime(request.received_in_lab_datetime, report_time)
        order.reported_datetime = NullTime.valid_time(report_time)

        derived = self._derived_results_status(existing)
        wanted = request.results
        if not wanted:
            if profile is None:
                log.warning(
                    "no results requested for unknown order profile %r; order has none",
                    request.order_profile,
                )
                wanted = []
            else:
                wanted = [ResultRequest(test_name=name) for name in profile.test_types]

        results = [
            self._result(profile, rr, request, order.collected_datetime, derived)
            for rr in wanted
        ]
        order.results = _merge_results(order.results, results)
        order.order_status = request.order_status or self.config.order_status.completed
        order.results_status = request.result_status or derived
        log.debug(
            "order %s/%s: %d results generated, %d in total, status %s",
            order.placer,
            order.filler,
            len(results),
            len(order.results),
            order.results_status,
        )
        return order

    def order_with_clinical_note(
        self,
        existing: Optional[Order],
        request: ClinicalNoteRequest,
        now: datetime,
    ) -> Order:
        """An order carrying a clinical note, or a new revision of the note in ``existing``."""
        existing_note = None
        if existing is not None:
            if len(existing.results) != 1:
                raise ValidationError(
                    f"order with clinical note must have exactly one result, got {len(existing.results)}"
                )
            if existing.results[0].clinical_note is None:
                raise ValidationError("order result does not carry a clinical note")
            existing_note = copy.deepcopy(existing.results[0].clinical_note)

        try:
            note = self.note_generator.random_document_for_clinical_note(request, existing_note, now)
        except Exception as err:
            raise GenerationError("order_with_clinical_note: cannot generate clinical note") from err

        log.debug("clinical note %s has %d contents", note.document_id, len(note.contents))
        return Order(
            order_profile=CodedElement(
                id=note.document_type,
                text=note.document_type,
                alternate_text=note.document_title,
            ),
            results=[Result(clinical_note=note)],
            results_status=self.config.result_status.authenticated_verified,
            diagnostic_serv_id=DIAGNOSTIC_SERV_ID_MDOC,
            ordering_provider=self.doctors.random(self.rng),
        )

    # ---- helpers --------------------------------------------------------------

    def _resolve_profile(self, name: str) -> Tuple[CodedElement, Optional[OrderProfile]]:
        if name == RANDOM:
            profile = self.order_profiles.random(self.rng)
        else:
            profile = self.order_profiles.resolve(name)
        if profile is None:
            log.warning("unknown order profile %r, using it as its own code", name)
            return CodedElement(id=name, text=name), None
        return profile.universal_service_id, profile

    def _derived_results_status(self, existing: Optional[Order]) -> str:
        rs = self.config.result_status
        if existing is not None and existing.results_status in (rs.final, rs.corrected):
            return rs.corrected
        return rs.final

    def _result(
        self,
        profile: Optional[OrderProfile],
        rr: ResultRequest,
        request: ResultsRequest,
        collected: NullTime,
        derived_status: str,
    ) -> Result:
        test_type: Optional[TestType] = None
        if profile is not None:
            test_type = profile.test_types.get(rr.test_name)
            if test_type is None:
                raise UnknownTestError(rr.test_name, profile.name)
            test_name = test_type.test_name
        else:
            test_name = CodedElement(id=rr.id or rr.test_name, text=rr.test_name)

        range_text = rr.reference_range or (test_type.ref_range if test_type else "")
        ref = ranges.parse(range_text)

        value, unit = rr.value, rr.unit
        if value == EMPTY:
            value = ""
        else:
            zone = _ZONES.get(value or NORMAL_VALUE)
            if zone is not None:
                value = self._synthesize(zone, ref, test_type, rr.test_name)
                if not unit and test_type is not None:
                    unit = test_type.unit

        value_type = infer_value_type(value, test_type.value_type if test_type else "")
        observed = collected.add(rr.observation_datetime_offset)
        return Result(
            test_name=test_name,
            value=value,
            unit=unit,
            value_type=value_type,
            range=range_text,
            abnormal_flag=self._abnormal_flag(rr.abnormal_flag, value, value_type, ref),
            observation_datetime=observed,
            status=rr.result_status or request.result_status or derived_status,
            notes=list(rr.notes) if rr.notes else self.note_generator.random_notes_for_result(),
        )

    def _synthesize(
        self,
        zone: ranges.Zone,
        ref: Optional[ranges.ReferenceRange],
        test_type: Optional[TestType],
        test_name: str,
    ) -> str:
        if ref is not None and ref.is_interval:
            return ranges.sample(zone, ref, self.rng)
        default = test_type.value if test_type is not None else ""
        if not default:
            log.warning("cannot make up a %s value for %r without a numeric range", zone.value, test_name)
        return default

    def _abnormal_flag(
        self,
        wanted: str,
        value: str,
        value_type: str,
        ref: Optional[ranges.ReferenceRange],
    ) -> str:
        flags = self.config.abnormal_flags
        literal = {
            ABNORMAL_FLAG_HIGH: flags.above_high_normal,
            ABNORMAL_FLAG_LOW: flags.below_low_normal,
            ABNORMAL_FLAG_NORMAL: flags.normal,
        }
        if wanted in literal:
            return literal[wanted]
        if wanted and wanted != ABNORMAL_FLAG_DEFAULT:
            return wanted
        if value_type != VALUE_TYPE_NM:
            return ""
        c = ranges.classify(value, ref)
        if c is ranges.Classification.ABOVE_HIGH:
            return flags.above_high_normal
        if c is ranges.Classification.BELOW_LOW:
            return flags.below_low_normal
        if c is ranges.Classification.NORMAL:
            return flags.normal
        return ""


def _lab_datetime(wanted: str, report_time: datetime) -> NullTime:
    if wanted == EMPTY:
        return NullTime.invalid()
    if wanted == MIDNIGHT:
        return NullTime.midnight_time(report_time)
    return NullTime.valid_time(report_time)


def _same_test(a: Result, b: Result) -> bool:
    return a.test_name is not None and b.test_name is not None and a.test_name.text == b.test_name.text


def _merge_results(prior: List[Result], new: List[Result]) -> List[Result]:
    """Replace prior results for the same test in place, keep the others, append the rest."""
    pending = list(new)
    merged: List[Result] = []
    for old in prior:
        idx = next((i for i, r in enumerate(pending) if _same_test(r, old)), None)
        if idx is None:
            merged.append(old)
        else:
            merged.append(pending.pop(idx))
    merged.extend(pending)
    return merged
