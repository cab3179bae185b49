"""Tests for log redaction of provider keys."""

from app.logging_config import _redact_key_material, mask_key
from conftest import GOOGLE_KEY, OPENAI_KEY


class TestMaskKey:
    def test_keeps_eight_characters(self):
        assert mask_key(OPENAI_KEY) == "sk-a1B2c..."

    def test_short_key(self):
        assert mask_key("abc") == "abc..."


class TestRedactKeyMaterial:
    def test_full_key_fields_redacted(self):
        event = _redact_key_material(
            None,
            "info",
            {
                "event": "key_rejected",
                "key": OPENAI_KEY,
                "api_key": OPENAI_KEY,
                "url": f"https://generativelanguage.googleapis.com/v1beta/models?key={GOOGLE_KEY}",
                "headers": {"Authorization": f"Bearer {OPENAI_KEY}"},
                "Authorization": f"Bearer {OPENAI_KEY}",
                "x-api-key": OPENAI_KEY,
            },
        )
        assert event["event"] == "key_rejected"
        for field in ("key", "api_key", "url", "headers", "Authorization", "x-api-key"):
            assert event[field] == "[REDACTED]"

    def test_key_prefix_passes_through(self):
        event = _redact_key_material(None, "info", {"key_prefix": mask_key(OPENAI_KEY)})
        assert event["key_prefix"] == "sk-a1B2c..."

    def test_overlong_key_prefix_truncated(self):
        event = _redact_key_material(None, "info", {"key_prefix": OPENAI_KEY})
        assert event["key_prefix"] == "sk-a1B2c..."

    def test_diagnostic_fields_untouched(self):
        fields = {"provider": "openai", "status_code": 401, "timeout": 5.0, "error_type": "ConnectError"}
        assert _redact_key_material(None, "info", dict(fields)) == fields
