"""Tests for ToolValidator."""

from healthchat.tools.base import ToolDescriptor
from healthchat.tools.health import SAVE_TOOL
from healthchat.tools.validation import ToolValidator


class TestToolValidator:
    """Test suite for ToolValidator.validate()."""

    def test_valid_args_pass(self):
        ok, err = ToolValidator.validate(SAVE_TOOL, {"systolic": "120", "diastolic": "80"})
        assert ok is True
        assert err is None

    def test_missing_required_arg_fails(self):
        ok, err = ToolValidator.validate(SAVE_TOOL, {"systolic": "120"})
        assert ok is False
        assert "diastolic" in err

    def test_extra_unknown_keys_rejected(self):
        ok, err = ToolValidator.validate(
            SAVE_TOOL, {"systolic": "120", "diastolic": "80", "pulse": "60"}
        )
        assert ok is False
        assert err is not None

    def test_additional_properties_true_allows_extra_keys(self):
        tool = ToolDescriptor(
            name="flexible",
            description="Accepts arbitrary extra keys.",
            input_schema={"properties": {}, "additionalProperties": True},
        )
        ok, err = ToolValidator.validate(tool, {"anything": "goes"})
        assert ok is True
        assert err is None

    def test_empty_schema_accepts_empty_input(self):
        tool = ToolDescriptor(name="blood_pressure", description="Latest reading.")
        ok, err = ToolValidator.validate(tool, {})
        assert ok is True
        assert err is None

    def test_empty_schema_rejects_arguments(self):
        tool = ToolDescriptor(name="blood_pressure", description="Latest reading.")
        ok, _ = ToolValidator.validate(tool, {"unit": "mmHg"})
        assert ok is False
