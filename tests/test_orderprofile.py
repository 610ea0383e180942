"""Tests for order profile and doctor reference data."""

import random

import pytest

from labsim.doctors import Doctors, load_doctors
from labsim.errors import ConfigError
from labsim.models import CodedElement, Doctor
from labsim.orderprofile import load_order_profiles


class TestOrderProfiles:
    def test_resolve(self, profiles):
        ue = profiles.resolve("UREA AND ELECTROLYTES")
        assert ue.universal_service_id == CodedElement(
            id="lpdc-3969", text="UREA AND ELECTROLYTES", coding_system="WinPath"
        )
        creatinine = ue.test_types["Creatinine"]
        assert creatinine.test_name == CodedElement(id="lpdc-2012", text="Creatinine", coding_system="WinPath")
        assert creatinine.value_type == "NM"
        assert creatinine.unit == "UMOLL"
        assert creatinine.ref_range == "49 - 92"
        assert creatinine.value == "51"

    def test_unknown(self, profiles):
        assert profiles.resolve("NOPE") is None

    def test_random(self, profiles):
        assert profiles.random(random.Random(3)).name in profiles.names()

    def test_from_file(self, tmp_path, config):
        p = tmp_path / "profiles.yml"
        p.write_text(
            "LFT:\n"
            "  universal_service_id: lft-1\n"
            "  test_types:\n"
            "    ALT:\n"
            "      value_type: NM\n"
            "      ref_range: 0 - 40\n"
        )
        profiles = load_order_profiles(p, config)
        assert profiles.names() == ["LFT"]
        alt = profiles.resolve("LFT").test_types["ALT"]
        assert alt.test_name.id == "ALT"
        assert alt.unit == ""

    def test_bad_file(self, tmp_path, config):
        p = tmp_path / "profiles.yml"
        p.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_order_profiles(p, config)

    def test_missing_file(self, tmp_path, config):
        with pytest.raises(ConfigError):
            load_order_profiles(tmp_path / "nope.yml", config)


class TestDoctors:
    def test_packaged(self, doctors):
        d = doctors.lookup("216865551019")
        assert d == Doctor(
            id="216865551019", surname="Osman", first_name="Arthur", prefix="Dr", specialty="General Medicine"
        )

    def test_random(self, doctors):
        assert doctors.lookup(doctors.random(random.Random(1)).id) is not None

    def test_add_replaces(self):
        doctors = Doctors([Doctor(id="1", surname="A")])
        doctors.add(Doctor(id="1", surname="B"))
        doctors.add(Doctor(id="2", surname="C"))
        assert len(doctors) == 2
        assert doctors.lookup("1").surname == "B"

    def test_empty_registry(self):
        with pytest.raises(ConfigError):
            Doctors().random(random.Random())

    def test_doctor_without_id(self, tmp_path):
        p = tmp_path / "doctors.yml"
        p.write_text("- surname: Nobody\n")
        with pytest.raises(ConfigError):
            load_doctors(p)
