"""SQLite storage implementation."""

import asyncio
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import (
    BotConfig,
    BotStyle,
    ConversationState,
    DialogueContext,
    HistoryItem,
    Lead,
    LeadStatus,
    Listing,
    OperationKind,
    PendingMessage,
    QualifiedLead,
    TraceEvent,
)


class IStorage(Protocol):
    """Durable store for conversations, the pending-message buffer and lead records."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Conversations
    async def save_conversation(self, state: ConversationState) -> None:
        """Upsert conversation state. Pending-task bookkeeping is left untouched."""
        ...

    async def get_conversation(self, conversation_id: str) -> ConversationState | None:
        """Get conversation state by identifier."""
        ...

    async def set_pending_task(
        self, conversation_id: str, task_handle: str, expiry_ms: int
    ) -> None:
        """Record the scheduled drain task for a conversation."""
        ...

    # Pending buffer
    async def append_pending(self, conversation_id: str, message: PendingMessage) -> None:
        """Append an inbound text to the conversation's buffer."""
        ...

    async def drain_pending(self, conversation_id: str) -> list[PendingMessage]:
        """Atomically read and clear the conversation's buffer."""
        ...

    # Listings
    async def save_listing(self, listing: Listing) -> None:
        """Save a listing."""
        ...

    async def get_listing(self, listing_code: str) -> Listing | None:
        """Get a listing by code."""
        ...

    # Leads
    async def save_lead(self, lead: Lead) -> None:
        """Upsert a lead by phone and listing code."""
        ...

    async def find_lead(self, phone: str, listing_code: str) -> Lead | None:
        """Get a lead by phone and listing code."""
        ...

    async def find_lead_by_conversation(self, conversation_id: str) -> Lead | None:
        """Get a lead by conversation identifier."""
        ...

    async def update_lead_chat_info(
        self,
        phone: str,
        listing_code: str,
        conversation_id: str,
        operation_kind: OperationKind,
    ) -> None:
        """Attach a conversation to a lead, creating the lead if needed."""
        ...

    async def update_lead_status(
        self,
        phone: str,
        listing_code: str,
        status: LeadStatus,
        name: str | None = None,
    ) -> bool:
        """Set a lead's qualification status. Returns False when no lead matched."""
        ...

    # Qualified leads
    async def save_qualified_lead(self, record: QualifiedLead) -> None:
        """Save a qualified-lead record."""
        ...

    async def get_qualified_leads(
        self, conversation_id: str | None = None
    ) -> list[QualifiedLead]:
        """Get qualified-lead records, optionally for one conversation."""
        ...

    # Bot config
    async def get_bot_config(self) -> BotConfig | None:
        """Get the bot configuration."""
        ...

    async def save_bot_config(self, config: BotConfig) -> None:
        """Save the bot configuration."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


_CONVERSATION_COLUMNS = """
    conversation_id, counterparty_address, listing_reference, operation_kind,
    description, link, features, profitability_report,
    profitability_report_available, detected_name, history,
    qualification_outcome, is_terminal, pending_task_handle,
    pending_task_expiry, follow_up_sent
"""

_LEAD_COLUMNS = """
    id, phone, listing_code, conversation_id, operation_kind, name,
    qualification_status
"""


def _optional_bool(value: int | None) -> bool | None:
    return None if value is None else bool(value)


def _optional_int(value: bool | None) -> int | None:
    return None if value is None else int(value)


class Storage:
    """SQLite storage implementation.

    All writes go through one lock so the drain transaction can never
    interleave with another statement on the shared connection.
    """

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    async def _write(self, sql: str, params: tuple) -> int:
        """Execute one write statement and commit. Returns the affected row count."""
        conn = self._require_conn()
        async with self._lock:
            cursor = await conn.execute(sql, params)
            await conn.commit()
            return cursor.rowcount

    # Conversations
    async def save_conversation(self, state: ConversationState) -> None:
        """Upsert conversation state. Pending-task bookkeeping is left untouched."""
        history_json = json.dumps(
            [item.to_dict() for item in state.history], ensure_ascii=False
        )
        await self._write(
            """
            INSERT INTO conversations (
                conversation_id, counterparty_address, listing_reference,
                operation_kind, description, link, features,
                profitability_report, profitability_report_available,
                detected_name, history, message_count, qualification_outcome,
                is_terminal, follow_up_sent, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT (conversation_id) DO UPDATE SET
                counterparty_address = excluded.counterparty_address,
                listing_reference = excluded.listing_reference,
                operation_kind = excluded.operation_kind,
                description = excluded.description,
                link = excluded.link,
                features = excluded.features,
                profitability_report = excluded.profitability_report,
                profitability_report_available = excluded.profitability_report_available,
                detected_name = excluded.detected_name,
                history = excluded.history,
                message_count = excluded.message_count,
                qualification_outcome = excluded.qualification_outcome,
                is_terminal = excluded.is_terminal,
                follow_up_sent = excluded.follow_up_sent,
                updated_at = CURRENT_TIMESTAMP
            """,
            (
                state.conversation_id,
                state.counterparty_address,
                state.listing_reference,
                state.operation_kind.value,
                state.context.description,
                state.context.link,
                state.context.features,
                state.context.profitability_report,
                int(state.context.profitability_report_available),
                state.detected_name,
                history_json,
                len(state.history),
                _optional_int(state.qualification_outcome),
                int(state.is_terminal),
                int(state.follow_up_sent),
            ),
        )

    async def get_conversation(self, conversation_id: str) -> ConversationState | None:
        """Get conversation state by identifier."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {_CONVERSATION_COLUMNS} FROM conversations WHERE conversation_id = ?",
            (conversation_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return ConversationState(
            conversation_id=row[0],
            counterparty_address=row[1],
            listing_reference=row[2],
            operation_kind=OperationKind(row[3]),
            context=DialogueContext(
                description=row[4],
                link=row[5],
                features=row[6],
                profitability_report=row[7],
                profitability_report_available=bool(row[8]),
            ),
            detected_name=row[9],
            history=[HistoryItem.from_dict(item) for item in json.loads(row[10])],
            qualification_outcome=_optional_bool(row[11]),
            is_terminal=bool(row[12]),
            pending_task_handle=row[13],
            pending_task_expiry=row[14],
            follow_up_sent=bool(row[15]),
        )

    async def set_pending_task(
        self, conversation_id: str, task_handle: str, expiry_ms: int
    ) -> None:
        """Record the scheduled drain task for a conversation."""
        await self._write(
            """
            UPDATE conversations
            SET pending_task_handle = ?, pending_task_expiry = ?
            WHERE conversation_id = ?
            """,
            (task_handle, expiry_ms, conversation_id),
        )

    # Pending buffer
    async def append_pending(self, conversation_id: str, message: PendingMessage) -> None:
        """Append an inbound text to the conversation's buffer."""
        await self._write(
            """
            INSERT INTO pending_messages (conversation_id, text, timestamp_ms)
            VALUES (?, ?, ?)
            """,
            (conversation_id, message.text, message.timestamp_ms),
        )

    async def drain_pending(self, conversation_id: str) -> list[PendingMessage]:
        """Atomically read and clear the conversation's buffer.

        Read, delete and the pending-task reset run in one IMMEDIATE
        transaction, so of two racing drains only one sees the messages.
        """
        conn = self._require_conn()
        async with self._lock:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = await conn.execute(
                    """
                    SELECT text, timestamp_ms
                    FROM pending_messages
                    WHERE conversation_id = ?
                    ORDER BY seq ASC
                    """,
                    (conversation_id,),
                )
                rows = await cursor.fetchall()
                await conn.execute(
                    "DELETE FROM pending_messages WHERE conversation_id = ?",
                    (conversation_id,),
                )
                await conn.execute(
                    """
                    UPDATE conversations
                    SET pending_task_handle = NULL, pending_task_expiry = NULL
                    WHERE conversation_id = ?
                    """,
                    (conversation_id,),
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

        return [PendingMessage(text=row[0], timestamp_ms=row[1]) for row in rows]

    # Listings
    async def save_listing(self, listing: Listing) -> None:
        """Save a listing."""
        await self._write(
            """
            INSERT OR REPLACE INTO listings (
                listing_code, description, link, operation_kind, features,
                profitability_report_available, profitability_report, is_active
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                listing.listing_code,
                listing.description,
                listing.link,
                listing.operation_kind.value,
                listing.features,
                int(listing.profitability_report_available),
                listing.profitability_report,
                int(listing.is_active),
            ),
        )

    async def get_listing(self, listing_code: str) -> Listing | None:
        """Get a listing by code."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT listing_code, description, link, operation_kind, features,
                   profitability_report_available, profitability_report, is_active
            FROM listings
            WHERE listing_code = ?
            """,
            (listing_code,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return Listing(
            listing_code=row[0],
            description=row[1],
            link=row[2],
            operation_kind=OperationKind(row[3]),
            features=row[4],
            profitability_report_available=bool(row[5]),
            profitability_report=row[6],
            is_active=bool(row[7]),
        )

    # Leads
    @staticmethod
    def _row_to_lead(row) -> Lead:
        return Lead(
            id=row[0],
            phone=row[1],
            listing_code=row[2],
            conversation_id=row[3],
            operation_kind=OperationKind(row[4]),
            name=row[5],
            qualification_status=LeadStatus(row[6]),
        )

    async def save_lead(self, lead: Lead) -> None:
        """Upsert a lead by phone and listing code."""
        await self._write(
            """
            INSERT INTO leads (
                phone, listing_code, conversation_id, operation_kind, name,
                qualification_status
            )
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (phone, listing_code) DO UPDATE SET
                conversation_id = excluded.conversation_id,
                operation_kind = excluded.operation_kind,
                name = excluded.name,
                qualification_status = excluded.qualification_status
            """,
            (
                lead.phone,
                lead.listing_code,
                lead.conversation_id,
                lead.operation_kind.value,
                lead.name,
                lead.qualification_status.value,
            ),
        )

    async def find_lead(self, phone: str, listing_code: str) -> Lead | None:
        """Get a lead by phone and listing code."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {_LEAD_COLUMNS} FROM leads WHERE phone = ? AND listing_code = ?",
            (phone, listing_code),
        )
        row = await cursor.fetchone()
        return self._row_to_lead(row) if row else None

    async def find_lead_by_conversation(self, conversation_id: str) -> Lead | None:
        """Get a lead by conversation identifier."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {_LEAD_COLUMNS} FROM leads WHERE conversation_id = ? ORDER BY id LIMIT 1",
            (conversation_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_lead(row) if row else None

    async def update_lead_chat_info(
        self,
        phone: str,
        listing_code: str,
        conversation_id: str,
        operation_kind: OperationKind,
    ) -> None:
        """Attach a conversation to a lead, creating the lead if needed."""
        await self._write(
            """
            INSERT INTO leads (phone, listing_code, conversation_id, operation_kind)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (phone, listing_code) DO UPDATE SET
                conversation_id = excluded.conversation_id,
                operation_kind = excluded.operation_kind
            """,
            (phone, listing_code, conversation_id, operation_kind.value),
        )

    async def update_lead_status(
        self,
        phone: str,
        listing_code: str,
        status: LeadStatus,
        name: str | None = None,
    ) -> bool:
        """Set a lead's qualification status. Returns False when no lead matched."""
        if name:
            updated = await self._write(
                """
                UPDATE leads SET qualification_status = ?, name = ?
                WHERE phone = ? AND listing_code = ?
                """,
                (status.value, name, phone, listing_code),
            )
        else:
            updated = await self._write(
                """
                UPDATE leads SET qualification_status = ?
                WHERE phone = ? AND listing_code = ?
                """,
                (status.value, phone, listing_code),
            )
        return updated > 0

    # Qualified leads
    async def save_qualified_lead(self, record: QualifiedLead) -> None:
        """Save a qualified-lead record."""
        await self._write(
            """
            INSERT INTO qualified_leads (
                phone, conversation_id, listing_code, conversation_summary,
                name, qualified
            )
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                record.phone,
                record.conversation_id,
                record.listing_code,
                record.conversation_summary,
                record.name,
                int(record.qualified),
            ),
        )

    async def get_qualified_leads(
        self, conversation_id: str | None = None
    ) -> list[QualifiedLead]:
        """Get qualified-lead records, optionally for one conversation."""
        conn = self._require_conn()

        query = """
            SELECT phone, conversation_id, listing_code, conversation_summary,
                   name, qualified
            FROM qualified_leads
        """
        params: tuple = ()
        if conversation_id:
            query += " WHERE conversation_id = ?"
            params = (conversation_id,)
        query += " ORDER BY id ASC"

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            QualifiedLead(
                phone=row[0],
                conversation_id=row[1],
                listing_code=row[2],
                conversation_summary=row[3],
                name=row[4],
                qualified=bool(row[5]),
            )
            for row in rows
        ]

    # Bot config
    async def get_bot_config(self) -> BotConfig | None:
        """Get the bot configuration."""
        conn = self._require_conn()

        cursor = await conn.execute(
            "SELECT value FROM bot_config WHERE key = 'config'"
        )
        row = await cursor.fetchone()

        if not row:
            return None

        data = json.loads(row[0])
        return BotConfig(
            active_style_id=data.get("activeStyleId", ""),
            styles=[
                BotStyle(
                    id=style["id"],
                    name=style.get("name", ""),
                    description=style.get("description", ""),
                    prompt_modifier=style.get("promptModifier", ""),
                )
                for style in data.get("styles", [])
            ],
        )

    async def save_bot_config(self, config: BotConfig) -> None:
        """Save the bot configuration."""
        value = json.dumps(
            {
                "activeStyleId": config.active_style_id,
                "styles": [
                    {
                        "id": style.id,
                        "name": style.name,
                        "description": style.description,
                        "promptModifier": style.prompt_modifier,
                    }
                    for style in config.styles
                ],
            },
            ensure_ascii=False,
        )
        await self._write(
            "INSERT OR REPLACE INTO bot_config (key, value) VALUES ('config', ?)",
            (value,),
        )

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        await self._write(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data, ensure_ascii=False, default=str),
                event.timestamp.isoformat(),
            ),
        )

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        conn = self._require_conn()

        conditions = []
        params = []

        if after:
            conditions.append("timestamp > ?")
            params.append(after.isoformat())
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=datetime.fromisoformat(row[4]).astimezone(timezone.utc),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        tables = [
            "pending_messages",
            "conversations",
            "qualified_leads",
            "leads",
            "listings",
            "bot_config",
            "trace_events",
        ]

        async with self._lock:
            for table in tables:
                await conn.execute(f"DELETE FROM {table}")
            await conn.commit()
