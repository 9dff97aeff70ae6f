"""Order data model for the portal."""

from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Dict, TYPE_CHECKING
from pydantic import BaseModel, Field

from ..utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from .profile import Profile


class OrderStatus(str, Enum):
    """Order status states. Any status may move to any other."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


class OrderPriority(str, Enum):
    """Order priority levels."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class BusinessType(str, Enum):
    IT_SERVICES = "it_services"
    ACADEMIC = "academic"
    OTHER = "other"


class CurrencyCode(str, Enum):
    USD = "USD"
    INR = "INR"
    EUR = "EUR"
    GBP = "GBP"


class EscalationLevel(str, Enum):
    NONE = "none"
    WARNING = "warning"
    CRITICAL = "critical"


STATUS_LABELS: Dict[OrderStatus, str] = {
    OrderStatus.NOT_STARTED: "Not Started",
    OrderStatus.IN_PROGRESS: "In Progress",
    OrderStatus.ON_HOLD: "On Hold",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
}


class Order(BaseModel):
    """A work order as stored in the `orders` table."""

    # Identification
    id: str
    order_code: str

    # Core fields
    title: str
    description: Optional[str] = None
    business_type: Optional[BusinessType] = None

    # Classification
    status: OrderStatus = OrderStatus.NOT_STARTED
    priority: OrderPriority = OrderPriority.NORMAL

    # Budget
    estimated_budget: Optional[float] = None
    actual_budget: Optional[float] = None
    currency_code: Optional[CurrencyCode] = CurrencyCode.USD

    # SLA / escalation
    sla_target_hours: Optional[int] = None
    escalation_level: EscalationLevel = EscalationLevel.NONE
    escalation_reason: Optional[str] = None
    escalated_at: Optional[datetime] = None
    due_date: Optional[date] = None

    # Ownership
    client_id: Optional[str] = None
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None

    # Timing
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_report_row(self, profiles_by_id: Dict[str, "Profile"]) -> List[str]:
        """Convert order to a CSV report row."""

        def display_name(profile_id: Optional[str]) -> str:
            if not profile_id:
                return ""
            profile = profiles_by_id.get(profile_id)
            if profile is None:
                return ""
            return profile.full_name or profile.email

        return [
            self.order_code,
            self.title,
            self.business_type.value if self.business_type else "",
            self.status.value,
            self.priority.value,
            self.currency_code.value if self.currency_code else "USD",
            _format_number(self.estimated_budget),
            _format_number(self.actual_budget),
            self.due_date.isoformat() if self.due_date else "",
            self.created_at.isoformat(),
            display_name(self.client_id),
            display_name(self.assigned_to),
        ]

    @classmethod
    def report_headers(cls) -> List[str]:
        """Get headers for the CSV report."""
        return [
            "Order Code",
            "Title",
            "Business Type",
            "Status",
            "Priority",
            "Currency",
            "Estimated Budget",
            "Actual Budget",
            "Due Date",
            "Created At",
            "Client",
            "Assigned To",
        ]


def _format_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


class OrderDraft(BaseModel):
    """Editable order fields submitted from the create/edit form."""
    title: str
    description: Optional[str] = None
    business_type: Optional[BusinessType] = None
    currency_code: CurrencyCode = CurrencyCode.USD
    client_id: Optional[str] = None
    status: OrderStatus = OrderStatus.NOT_STARTED
    priority: OrderPriority = OrderPriority.NORMAL
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    estimated_budget: Optional[float] = None
    actual_budget: Optional[float] = None

    def to_row(self) -> dict:
        """Row payload for insert/update; empty strings become NULL."""
        row = self.model_dump(mode="json")
        for key in ("description", "client_id", "assigned_to"):
            if not row.get(key):
                row[key] = None
        return row
