"""Tests for SideEffectDispatcher and the qualified-lead message."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from conftest import CHAT_ID, PHONE

from leadbot.dispatch import SideEffectDispatcher, build_qualified_lead_message
from leadbot.dispatch.dispatcher import sanitize_summary_value
from leadbot.messaging import SendError
from leadbot.models import Lead, LeadStatus, LeadSummary, OperationKind, Outcome

OPERATOR = "34911000000"


@pytest_asyncio.fixture
async def lead(storage):
    record = Lead(
        phone=PHONE,
        listing_code="ALQ-001",
        operation_kind=OperationKind.RENTAL,
        conversation_id=CHAT_ID,
    )
    await storage.save_lead(record)
    return record


@pytest.fixture
def dispatcher(storage, sender, generator, tracker):
    return SideEffectDispatcher(
        storage, sender, generator, tracker=tracker, notification_address=OPERATOR
    )


class TestSanitizeSummaryValue:
    """Tests for sanitize_summary_value()."""

    def test_empty_tokens(self):
        for value in (None, "", "   ", "Sin datos", "unknown", " N/A ", "no hay datos"):
            assert sanitize_summary_value(value) is None

    def test_real_value_is_trimmed(self):
        assert sanitize_summary_value("  2 adultos ") == "2 adultos"


class TestBuildQualifiedLeadMessage:
    """Tests for build_qualified_lead_message()."""

    def test_rental_with_fallbacks(self, make_state):
        """Test that missing or placeholder values become 'Sin datos'."""
        state = make_state(detected_name="Marta")
        summary = LeadSummary(name="UNKNOWN", people="2 adultos", pets="sin datos")

        message = build_qualified_lead_message(state, summary)

        assert message.splitlines() == [
            "Lead cualificado ✅",
            f"Teléfono: {PHONE}",
            "Nombre: Marta",
            "Propiedad: Piso en Chamberí",
            "Operación: Alquiler",
            "Personas: 2 adultos",
            "Ingresos: Sin datos",
            "Mascotas: Sin datos",
            "Fechas: Sin datos",
            "Disponibilidad visita: Sin datos",
        ]

    def test_sale_fields_and_notes(self, make_state):
        state = make_state(operation_kind=OperationKind.SALE)
        summary = LeadSummary(payment_method="Hipoteca", notes="Quiere garaje")

        lines = build_qualified_lead_message(state, summary).splitlines()

        assert "Nombre: Sin datos" in lines
        assert "Forma de pago: Hipoteca" in lines
        assert "Personas: Sin datos" not in lines
        assert lines[-1] == "Notas: Quiere garaje"


class TestDispatchQualified:
    """Tests for the qualified outcome."""

    @pytest.mark.asyncio
    async def test_all_actions_run(self, dispatcher, storage, sender, generator, lead, make_state):
        generator.summarize_lead.return_value = LeadSummary(name="Marta López")
        state = make_state(qualification_outcome=True, is_terminal=True)

        await dispatcher.dispatch(state, Outcome.QUALIFIED)

        sender.send_text.assert_awaited_once()
        to, body = sender.send_text.call_args.args
        assert to == OPERATOR
        assert "Nombre: Marta López" in body

        records = await storage.get_qualified_leads(CHAT_ID)
        assert len(records) == 1
        assert records[0].name == "Marta López"
        assert records[0].conversation_summary == body

        stored = await storage.find_lead(PHONE, "ALQ-001")
        assert stored.qualification_status == LeadStatus.QUALIFIED
        assert stored.name == "Marta López"

        events = await storage.get_trace_events(event_types=["lead_qualified"])
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_failed_notification_does_not_stop_the_rest(
        self, dispatcher, storage, sender, lead, make_state
    ):
        """Test that each side effect is isolated from the others."""
        sender.send_text.side_effect = SendError("gateway down")
        state = make_state(qualification_outcome=True, is_terminal=True)

        await dispatcher.dispatch(state, Outcome.QUALIFIED)

        assert len(await storage.get_qualified_leads(CHAT_ID)) == 1
        stored = await storage.find_lead(PHONE, "ALQ-001")
        assert stored.qualification_status == LeadStatus.QUALIFIED
        failures = await storage.get_trace_events(event_types=["side_effect_failed"])
        assert failures[0].data["action"] == "notify"

    @pytest.mark.asyncio
    async def test_summary_failure_uses_empty_summary(
        self, dispatcher, storage, generator, lead, make_state
    ):
        generator.summarize_lead.side_effect = RuntimeError("LLM down")
        state = make_state(detected_name="Marta", qualification_outcome=True, is_terminal=True)

        await dispatcher.dispatch(state, Outcome.QUALIFIED)

        records = await storage.get_qualified_leads(CHAT_ID)
        assert records[0].name == "Marta"

    @pytest.mark.asyncio
    async def test_no_notification_address(self, storage, sender, generator, lead, make_state):
        dispatcher = SideEffectDispatcher(storage, sender, generator)

        await dispatcher.dispatch(make_state(), Outcome.QUALIFIED)

        sender.send_text.assert_not_called()
        assert len(await storage.get_qualified_leads()) == 1

    @pytest.mark.asyncio
    async def test_missing_lead_is_tolerated(self, dispatcher, storage, make_state):
        await dispatcher.dispatch(make_state(), Outcome.QUALIFIED)

        assert await storage.find_lead(PHONE, "ALQ-001") is None
        assert len(await storage.get_qualified_leads()) == 1

    @pytest.mark.asyncio
    async def test_storage_failure_is_tracked(self, dispatcher, storage, sender, lead, make_state, monkeypatch):
        monkeypatch.setattr(
            storage, "save_qualified_lead", AsyncMock(side_effect=RuntimeError("locked"))
        )

        await dispatcher.dispatch(make_state(), Outcome.QUALIFIED)

        sender.send_text.assert_awaited_once()
        stored = await storage.find_lead(PHONE, "ALQ-001")
        assert stored.qualification_status == LeadStatus.QUALIFIED
        failures = await storage.get_trace_events(event_types=["side_effect_failed"])
        assert failures[0].data["action"] == "save_qualified_lead"


class TestDispatchRejected:
    """Tests for the rejected outcome."""

    @pytest.mark.asyncio
    async def test_rejected_updates_status_only(self, dispatcher, storage, sender, generator, lead, make_state):
        await dispatcher.dispatch(make_state(), Outcome.REJECTED)

        stored = await storage.find_lead(PHONE, "ALQ-001")
        assert stored.qualification_status == LeadStatus.REJECTED
        sender.send_text.assert_not_called()
        generator.summarize_lead.assert_not_called()
        assert await storage.get_qualified_leads() == []

    @pytest.mark.asyncio
    async def test_lead_is_found_by_conversation(self, dispatcher, storage, make_state):
        """Test that the status lands on the linked lead when its phone differs."""
        await storage.save_lead(
            Lead(
                phone="+34 600 111 222",
                listing_code="ALQ-001",
                operation_kind=OperationKind.RENTAL,
                conversation_id=CHAT_ID,
            )
        )

        await dispatcher.dispatch(make_state(), Outcome.REJECTED)

        stored = await storage.find_lead("+34 600 111 222", "ALQ-001")
        assert stored.qualification_status == LeadStatus.REJECTED
        assert await storage.find_lead(PHONE, "ALQ-001") is None

    @pytest.mark.asyncio
    async def test_lead_lookup_failure_falls_back_to_address(
        self, dispatcher, storage, lead, make_state, monkeypatch
    ):
        monkeypatch.setattr(
            storage, "find_lead_by_conversation", AsyncMock(side_effect=RuntimeError("locked"))
        )

        await dispatcher.dispatch(make_state(), Outcome.REJECTED)

        stored = await storage.find_lead(PHONE, "ALQ-001")
        assert stored.qualification_status == LeadStatus.REJECTED

    @pytest.mark.asyncio
    async def test_active_outcome_does_nothing(self, dispatcher, storage, sender, lead, make_state):
        await dispatcher.dispatch(make_state(), Outcome.ACTIVE)

        sender.send_text.assert_not_called()
        stored = await storage.find_lead(PHONE, "ALQ-001")
        assert stored.qualification_status == LeadStatus.NOT_QUALIFIED
