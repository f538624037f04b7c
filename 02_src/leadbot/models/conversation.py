"""Conversation-related data models."""

from dataclasses import dataclass, field
from enum import Enum

from .messages import HistoryItem


class OperationKind(str, Enum):
    """Listing operation type, stored with the listing vocabulary."""

    SALE = "Venta"
    RENTAL = "Alquiler"


class Outcome(str, Enum):
    """Qualification state of a conversation."""

    ACTIVE = "active"
    QUALIFIED = "qualified"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not Outcome.ACTIVE


@dataclass
class DialogueContext:
    """Static listing context handed to every reply generation."""

    description: str = ""
    link: str = ""
    features: str = ""
    profitability_report: str = ""
    profitability_report_available: bool = False


@dataclass
class ConversationState:
    """Authoritative aggregate for one conversation about one listing.

    ``is_terminal`` is true exactly when ``qualification_outcome`` is set.
    """

    conversation_id: str
    counterparty_address: str
    listing_reference: str
    operation_kind: OperationKind
    context: DialogueContext = field(default_factory=DialogueContext)
    detected_name: str | None = None
    history: list[HistoryItem] = field(default_factory=list)
    qualification_outcome: bool | None = None
    is_terminal: bool = False
    pending_task_handle: str | None = None
    pending_task_expiry: int | None = None
    follow_up_sent: bool = False

    @property
    def outcome(self) -> Outcome:
        if self.qualification_outcome is None:
            return Outcome.ACTIVE
        return Outcome.QUALIFIED if self.qualification_outcome else Outcome.REJECTED

    def apply_outcome(self, outcome: Outcome) -> None:
        """Move to a terminal outcome. ACTIVE leaves the state untouched."""
        if not outcome.is_terminal:
            return
        if self.is_terminal:
            raise RuntimeError(f"Conversation {self.conversation_id} is already terminal")
        self.qualification_outcome = outcome is Outcome.QUALIFIED
        self.is_terminal = True

    def last_timestamp(self) -> int:
        return self.history[-1].timestamp_ms if self.history else 0
