import structlog
from backend.dinver_ai.logging_config import (
    REDACTED,
    SERVICE_NAME,
    add_service_context,
    redact_contact_fields,
    turn_context,
)


class TestProcessors:
    def test_contact_values_are_masked(self):
        event = redact_contact_fields(
            None,
            "info",
            {
                "event": "ai_payload",
                "phone": "+385 1 111 222",
                "email": None,
                "contact": {"email": "hello@marabu.hr", "website": "https://marabu.hr"},
            },
        )

        assert event["phone"] == REDACTED
        assert event["email"] is None
        assert event["contact"] == {"email": REDACTED, "website": "https://marabu.hr"}

    def test_service_context(self):
        event = add_service_context(None, "info", {"event": "ai_interaction"})

        assert event["service"] == SERVICE_NAME
        assert event["version"]


def test_turn_context_binds_only_present_fields():
    structlog.contextvars.clear_contextvars()

    with turn_context(thread_id="t1", language="hr", restaurant_id=None):
        assert structlog.contextvars.get_contextvars() == {"thread_id": "t1", "language": "hr"}

    assert structlog.contextvars.get_contextvars() == {}
