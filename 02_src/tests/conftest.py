"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

CHAT_ID = "34600111222@s.whatsapp.net"
PHONE = "34600111222"


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from leadbot.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create Tracker with storage."""
    from leadbot.tracker import Tracker

    return Tracker(storage=storage)


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="Test response")
    return llm


@pytest.fixture
def generator():
    """Create mock text generator."""
    from leadbot.models import LeadSummary

    gen = Mock()
    gen.generate_reply = AsyncMock(return_value="¿Con quién hablo?")
    gen.extract_name = AsyncMock(return_value=None)
    gen.summarize_lead = AsyncMock(return_value=LeadSummary())
    gen.translate = AsyncMock(side_effect=lambda text: f"EN: {text}")
    return gen


@pytest.fixture
def sender():
    """Create mock gateway sender."""
    from leadbot.messaging import SendResult

    snd = Mock()
    snd.send_text = AsyncMock(
        return_value=SendResult(conversation_id=CHAT_ID, message_id="msg-1")
    )
    return snd


@pytest.fixture
def listing():
    """A rental listing."""
    from leadbot.models import Listing, OperationKind

    return Listing(
        listing_code="ALQ-001",
        description="Piso en Chamberí",
        link="https://example.com/alq-001",
        operation_kind=OperationKind.RENTAL,
        features="3 habitaciones, 2 baños (balcón, terraza), vistas al mar",
    )


@pytest.fixture
def make_state():
    """Factory for conversation states."""
    from leadbot.models import (
        ConversationState,
        DialogueContext,
        HistoryItem,
        OperationKind,
    )

    def _make(**overrides):
        values = {
            "conversation_id": CHAT_ID,
            "counterparty_address": PHONE,
            "listing_reference": "ALQ-001",
            "operation_kind": OperationKind.RENTAL,
            "context": DialogueContext(
                description="Piso en Chamberí",
                link="https://example.com/alq-001",
                features="3 habitaciones",
            ),
            "history": [
                HistoryItem(role="assistant", text="Hola", timestamp_ms=1000),
                HistoryItem(role="assistant", text="¿Has visto las características?", timestamp_ms=1001),
            ],
        }
        values.update(overrides)
        return ConversationState(**values)

    return _make
