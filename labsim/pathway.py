"""Requests that drive the order generator, as written in a pathway.

String fields accept a few sentinel values besides literal data, see the constants below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional

# Pick any known order profile.
RANDOM = "RANDOM"
# Force an empty value, or an invalid (absent) date.
EMPTY = "EMPTY"
# Date tagged to render as local midnight.
MIDNIGHT = "MIDNIGHT"

# Synthesized values, sampled from the reference range.
NORMAL_VALUE = "NORMAL"
ABNORMAL_HIGH = "ABNORMAL_HIGH"
ABNORMAL_LOW = "ABNORMAL_LOW"

# Abnormal flag literals.
ABNORMAL_FLAG_DEFAULT = "DEFAULT"
ABNORMAL_FLAG_HIGH = "HIGH"
ABNORMAL_FLAG_LOW = "LOW"
ABNORMAL_FLAG_NORMAL = "NORMAL"


@dataclass
class OrderRequest:
    order_profile: str
    order_status: str = ""


@dataclass
class ResultRequest:
    test_name: str
    # Identifier for the test when the order profile is not known.
    id: str = ""
    value: str = ""
    unit: str = ""
    reference_range: str = ""
    abnormal_flag: str = ""
    result_status: str = ""
    notes: Optional[List[str]] = None
    observation_datetime_offset: timedelta = field(default_factory=timedelta)


@dataclass
class ResultsRequest:
    order_profile: str
    results: List[ResultRequest] = field(default_factory=list)
    order_status: str = ""
    result_status: str = ""
    collected_datetime: str = ""
    received_in_lab_datetime: str = ""


@dataclass
class ClinicalNoteRequest:
    content_type: str = ""
    document_id: str = ""
    document_title: str = ""
    document_type: str = ""
