"""Exceptions raised by order generation and HL7 encoding."""

from __future__ import annotations


class LabsimError(Exception):
    """Base class for all labsim errors."""


class ConfigError(LabsimError):
    """A configuration or reference data file is missing or malformed."""


class ValidationError(LabsimError):
    """The caller passed input with the wrong shape."""


class UnknownTestError(LabsimError):
    """A test name is not defined in an order profile that is otherwise known."""

    def __init__(self, test_name: str, order_profile: str):
        super().__init__(f"test type {test_name!r} not found in order profile {order_profile!r}")
        self.test_name = test_name
        self.order_profile = order_profile


class RangeError(LabsimError):
    """A reference range cannot be parsed or cannot be sampled from."""


class GenerationError(LabsimError):
    """A collaborator failed while building an order."""


class EncodingError(LabsimError):
    """A segment or message cannot be rendered."""
