"""Lead, listing and bot configuration models."""

from dataclasses import dataclass, field, fields
from enum import Enum

from .conversation import OperationKind


class LeadStatus(str, Enum):
    """Qualification status stored on a lead record."""

    NOT_QUALIFIED = "not_qualified"
    QUALIFIED = "qualified"
    REJECTED = "rejected"


@dataclass
class Listing:
    """A property listing referenced by leads and conversations."""

    listing_code: str
    description: str
    link: str
    operation_kind: OperationKind
    features: str = ""
    profitability_report_available: bool = False
    profitability_report: str = ""
    is_active: bool = True


@dataclass
class Lead:
    """A counterparty's interest in one listing."""

    phone: str
    listing_code: str
    operation_kind: OperationKind
    conversation_id: str = ""
    name: str | None = None
    qualification_status: LeadStatus = LeadStatus.NOT_QUALIFIED
    id: int | None = None


@dataclass
class LeadSummary:
    """Qualification attributes extracted once a lead qualifies."""

    name: str | None = None
    people: str | None = None
    income: str | None = None
    pets: str | None = None
    payment_method: str | None = None
    dates: str | None = None
    visit_availability: str | None = None
    notes: str | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass
class QualifiedLead:
    """Record persisted when a conversation ends qualified."""

    phone: str
    conversation_id: str
    listing_code: str
    conversation_summary: str
    name: str
    qualified: bool = True


@dataclass
class BotStyle:
    """A named reply style with the prompt fragment that enforces it."""

    id: str
    name: str
    description: str
    prompt_modifier: str


@dataclass
class BotConfig:
    """Persisted bot configuration."""

    active_style_id: str
    styles: list[BotStyle] = field(default_factory=list)

    def active_style(self) -> BotStyle | None:
        for style in self.styles:
            if style.id == self.active_style_id:
                return style
        return None
