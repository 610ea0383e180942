"""Tests for loading the HL7 configuration."""

import pytest

from labsim.config import HL7Config, hl7_config_from_dict, load_hl7_config
from labsim.errors import ConfigError


class TestLoadHL7Config:
    def test_packaged_defaults(self):
        cfg = load_hl7_config()
        assert cfg.order_control.new == "NW"
        assert cfg.order_status.in_process == "IP"
        assert cfg.order_status.completed == "CM"
        assert cfg.result_status.final == "F"
        assert cfg.result_status.corrected == "C"
        assert cfg.result_status.authenticated_verified == "AUTHVRF"
        assert cfg.abnormal_flags.above_high_normal == "H"
        assert cfg.abnormal_flags.below_low_normal == "L"
        assert cfg.abnormal_flags.normal == ""
        assert cfg.coding_system == "WinPath"
        assert cfg.location.key == "Europe/London"
        assert cfg.encoding.segment_terminator == "\r"
        assert cfg.encoding.encoding_characters == "^~\\&"
        assert cfg.version == "2.3"

    def test_partial_file_keeps_defaults(self, tmp_path):
        p = tmp_path / "hl7.yml"
        p.write_text("coding_system: LOCAL\norder_status:\n  completed: DONE\n")
        cfg = load_hl7_config(p)
        assert cfg.coding_system == "LOCAL"
        assert cfg.order_status.completed == "DONE"
        assert cfg.order_status.in_process == "IP"
        assert cfg.result_status == HL7Config().result_status

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_hl7_config(tmp_path / "nope.yml")

    def test_bad_yaml(self, tmp_path):
        p = tmp_path / "hl7.yml"
        p.write_text("order_status: [unclosed\n")
        with pytest.raises(ConfigError) as exc:
            load_hl7_config(p)
        assert exc.value.__cause__ is not None

    def test_unknown_key(self):
        with pytest.raises(ConfigError):
            hl7_config_from_dict({"colour": "blue"})

    def test_unknown_section_key(self):
        with pytest.raises(ConfigError):
            hl7_config_from_dict({"order_status": {"paused": "X"}})

    def test_unknown_time_zone(self):
        with pytest.raises(ConfigError):
            hl7_config_from_dict({"timezone": "Mars/Olympus"})

    def test_empty_value_is_empty_string(self):
        cfg = hl7_config_from_dict({"abnormal_flags": {"normal": None}})
        assert cfg.abnormal_flags.normal == ""
