"""Tests for TextGenerator."""

import pytest

from leadbot.llm import TextGenerator, build_transcript, parse_lead_summary
from leadbot.models import BotStyle, DialogueContext, HistoryItem, LeadSummary, OperationKind

STYLE = BotStyle(id="conciso", name="Conciso", description="", prompt_modifier="- Brevedad.")

HISTORY = [
    HistoryItem(role="assistant", text="¿Con quién hablo?", timestamp_ms=1),
    HistoryItem(role="user", text="Soy Marta", timestamp_ms=2),
]


class TestBuildTranscript:
    """Tests for build_transcript()."""

    def test_role_prefixes(self):
        assert build_transcript(HISTORY) == "[ASISTENTE]: ¿Con quién hablo?\n\n[USUARIO]: Soy Marta"


class TestParseLeadSummary:
    """Tests for parse_lead_summary()."""

    def test_json_wrapped_in_prose(self):
        output = (
            'Aquí tienes el resumen:\n{"name": "Marta", "people": "2 adultos", '
            '"paymentMethod": "  ", "visitAvailability": "Tardes", "pets": 3}\nSaludos'
        )
        summary = parse_lead_summary(output)
        assert summary.name == "Marta"
        assert summary.people == "2 adultos"
        assert summary.payment_method is None
        assert summary.visit_availability == "Tardes"
        assert summary.pets is None
        assert summary.notes is None

    def test_unparseable_output_is_empty(self):
        assert parse_lead_summary("no JSON here").is_empty()
        assert parse_lead_summary("{broken").is_empty()
        assert parse_lead_summary("[1, 2]").is_empty()


class TestTextGenerator:
    """Tests for the generation call shapes."""

    @pytest.mark.asyncio
    async def test_generate_reply_sends_transcript_and_context(self, mock_llm):
        """Test that the reply call carries history and static context."""
        mock_llm.complete.return_value = "  ¿Cuántas personas viviréis?  "
        generator = TextGenerator(mock_llm)
        context = DialogueContext(
            link="https://example.com/alq-001",
            features="Ascensor",
            profitability_report="5% bruto",
            profitability_report_available=True,
        )

        reply = await generator.generate_reply(HISTORY, context, OperationKind.RENTAL, STYLE)

        assert reply == "¿Cuántas personas viviréis?"
        kwargs = mock_llm.complete.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": build_transcript(HISTORY)}]
        assert "- Brevedad." in kwargs["system"]
        assert "Alquiler" in kwargs["system"]
        assert "https://example.com/alq-001" in kwargs["system"]
        assert "5% bruto" in kwargs["system"]
        assert "[LEAD_CUALIFICADO]" in kwargs["system"]

    @pytest.mark.asyncio
    async def test_profitability_text_omitted_when_unavailable(self, mock_llm):
        generator = TextGenerator(mock_llm)
        context = DialogueContext(profitability_report="5% bruto")

        await generator.generate_reply(HISTORY, context, OperationKind.SALE, STYLE)

        system = mock_llm.complete.call_args.kwargs["system"]
        assert "5% bruto" not in system
        assert "Informe de rentabilidad disponible: FALSE" in system

    @pytest.mark.asyncio
    async def test_extract_name(self, mock_llm):
        mock_llm.complete.return_value = '"Marta López"'
        assert await TextGenerator(mock_llm).extract_name(HISTORY) == "Marta López"

    @pytest.mark.asyncio
    async def test_extract_name_unknown(self, mock_llm):
        mock_llm.complete.return_value = "unknown"
        assert await TextGenerator(mock_llm).extract_name(HISTORY) is None

    @pytest.mark.asyncio
    async def test_no_user_turns_skips_calls(self, mock_llm):
        """Test that name and summary calls need user content."""
        generator = TextGenerator(mock_llm)
        assistant_only = HISTORY[:1]

        assert await generator.extract_name(assistant_only) is None
        assert await generator.summarize_lead(assistant_only, OperationKind.SALE) == LeadSummary()
        mock_llm.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_summarize_lead(self, mock_llm):
        mock_llm.complete.return_value = '{"name": "Marta", "paymentMethod": "Hipoteca"}'

        summary = await TextGenerator(mock_llm).summarize_lead(HISTORY, OperationKind.SALE)

        assert summary.payment_method == "Hipoteca"
        assert "forma de pago" in mock_llm.complete.call_args.kwargs["system"]

    @pytest.mark.asyncio
    async def test_translate(self, mock_llm):
        mock_llm.complete.return_value = "Lift, garage"
        generator = TextGenerator(mock_llm)

        assert await generator.translate("Ascensor, garaje") == "Lift, garage"
        assert await generator.translate("  ") == "  "
        assert mock_llm.complete.call_count == 1

    @pytest.mark.asyncio
    async def test_translate_empty_output_raises(self, mock_llm):
        mock_llm.complete.return_value = ""
        with pytest.raises(RuntimeError):
            await TextGenerator(mock_llm).translate("Ascensor")
