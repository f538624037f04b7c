"""Tests for completion marker parsing."""

from leadbot.dialogue import parse_assistant_reply
from leadbot.models import Outcome


class TestParseAssistantReply:
    """Tests for parse_assistant_reply()."""

    def test_positive_marker(self):
        """Test that the positive marker qualifies and is stripped."""
        reply = parse_assistant_reply(
            "Genial, el comercial te llamará para confirmar la visita.\n[LEAD_CUALIFICADO]\n"
        )
        assert reply.outcome == Outcome.QUALIFIED
        assert reply.text == "Genial, el comercial te llamará para confirmar la visita."

    def test_negative_marker(self):
        reply = parse_assistant_reply("Gracias por tu tiempo.\n[LEAD_NO_INTERESADO]")
        assert reply.outcome == Outcome.REJECTED
        assert reply.text == "Gracias por tu tiempo."

    def test_no_marker(self):
        reply = parse_assistant_reply("  ¿Con quién hablo?  ")
        assert reply.outcome == Outcome.ACTIVE
        assert reply.text == "¿Con quién hablo?"

    def test_marker_only_leaves_empty_text(self):
        reply = parse_assistant_reply("[LEAD_CUALIFICADO]")
        assert reply.outcome == Outcome.QUALIFIED
        assert reply.text == ""
