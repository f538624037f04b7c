"""Tests for Application."""

import asyncio
import time
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from conftest import CHAT_ID, PHONE

from leadbot.app import Application
from leadbot.config import Settings
from leadbot.scheduling import AsyncioTaskQueue


def _application(mock_llm, sender, **settings):
    return Application(
        db_path=":memory:",
        settings=Settings(**settings),
        llm_provider=mock_llm,
        sender=sender,
    )


@pytest_asyncio.fixture
async def app(mock_llm, sender):
    """Create and start a test application with a short quiet period."""
    application = _application(mock_llm, sender, buffer_delay_seconds=0.05)
    await application.start()
    yield application
    await application.stop()


class TestApplicationStart:
    """Tests for Application.start()."""

    @pytest.mark.asyncio
    async def test_start_initializes_components(self, app):
        """Test that start initializes all components."""
        assert app._storage is not None
        assert app._tracker is not None
        assert app._scheduler is not None
        assert app._pipeline is not None
        assert isinstance(app._task_queue, AsyncioTaskQueue)

    @pytest.mark.asyncio
    async def test_start_creates_database_tables(self, app):
        """Test that start creates database tables."""
        async with app._storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = {row[0] for row in await cursor.fetchall()}

        assert {"conversations", "pending_messages", "leads", "qualified_leads"} <= tables

    @pytest.mark.asyncio
    async def test_injected_task_queue_is_used(self, mock_llm, sender):
        queue = Mock()
        queue.schedule = AsyncMock()
        application = Application(
            db_path=":memory:", settings=Settings(), llm_provider=mock_llm, sender=sender, task_queue=queue
        )
        await application.start()

        assert application._task_queue is queue
        await application.stop()

    @pytest.mark.asyncio
    async def test_missing_llm_key_fails_start(self, sender, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        application = Application(db_path=":memory:", settings=Settings(), sender=sender)

        with pytest.raises(ValueError):
            await application.start()
        await application.stop()


class TestApplicationFlow:
    """End-to-end flow through the local task delivery."""

    @pytest.mark.asyncio
    async def test_inbound_message_gets_reply_after_quiet_period(self, app, mock_llm, sender, listing):
        """Test start -> inbound burst -> single debounced reply."""
        await app.storage.save_listing(listing)
        await app.pipeline.start_conversation(PHONE, "ALQ-001")
        sender.send_text.reset_mock()
        mock_llm.complete.return_value = "¿Cuántas personas viviréis?"

        now = int(time.time())
        for text, ts in (("Sí", now + 1), ("las he visto", now + 2)):
            await app.pipeline.handle_webhook(
                {"messages": [{"chat_id": CHAT_ID, "from": PHONE, "text": {"body": text}, "timestamp": ts}]}
            )
        sender.send_text.assert_not_called()

        await asyncio.sleep(0.3)

        sender.send_text.assert_awaited_once_with(PHONE, "¿Cuántas personas viviréis?", CHAT_ID)
        state = await app.storage.get_conversation(CHAT_ID)
        assert [i.role for i in state.history] == ["assistant", "assistant", "user", "user", "assistant"]
        assert state.pending_task_handle is None


class TestApplicationStop:
    """Tests for Application.stop()."""

    @pytest.mark.asyncio
    async def test_stop_closes_storage(self, mock_llm, sender):
        """Test that stop closes the storage connection."""
        application = _application(mock_llm, sender)
        await application.start()
        await application.stop()

        assert application._storage._conn is None


class TestApplicationReset:
    """Tests for Application.reset()."""

    @pytest.mark.asyncio
    async def test_reset_clears_storage_and_cache(self, app, make_state):
        state = make_state()
        await app.storage.save_conversation(state)
        app._cache.put(state, [CHAT_ID])
        app._identity.remember(CHAT_ID, "34600111222@c.us")

        await app.reset()

        assert await app.storage.get_conversation(CHAT_ID) is None
        assert len(app._cache) == 0
        assert len(app._identity) == 0


class TestApplicationProperties:
    """Tests for Application properties."""

    @pytest.mark.asyncio
    async def test_storage_property(self, app):
        assert app.storage is app._storage

    def test_properties_raise_when_not_started(self, mock_llm, sender):
        """Test that component properties raise before start."""
        application = _application(mock_llm, sender)

        with pytest.raises(RuntimeError, match="not started"):
            _ = application.storage
        with pytest.raises(RuntimeError, match="not started"):
            _ = application.pipeline
        with pytest.raises(RuntimeError, match="not started"):
            _ = application.scheduler

    def test_settings_property(self, mock_llm, sender):
        application = _application(mock_llm, sender, agent_name="Inmo")
        assert application.settings.agent_name == "Inmo"
