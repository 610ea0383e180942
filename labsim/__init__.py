"""Synthetic lab orders, results and clinical notes, encoded as HL7v2 messages."""

from .config import HL7Config, load_hl7_config
from .doctors import Doctors, load_doctors
from .generators import OrderGenerator
from .messages import MessageBuilder
from .notes import FakerNoteGenerator
from .orderprofile import OrderProfiles, load_order_profiles
from .utils import SequenceIDGenerator

__all__ = [
    "Doctors",
    "FakerNoteGenerator",
    "HL7Config",
    "MessageBuilder",
    "OrderGenerator",
    "OrderProfiles",
    "SequenceIDGenerator",
    "load_doctors",
    "load_hl7_config",
    "load_order_profiles",
]
