"""
Order record as read from the `orders` table.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from models.base import BaseSchema, CalendarDate


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    COMPLETED = "Completed"
    IN_PROGRESS = "In Progress"
    CANCELLED = "Cancelled"


class Order(BaseSchema):
    """
    A single client order.

    Only COMPLETED orders count toward revenue and order totals.
    CANCELLED orders are tracked separately and never add revenue.
    """

    id: str = Field(..., description="Order ID")
    client_username: str = Field(..., description="Username of the ordering client")
    date: CalendarDate = Field(..., description="Order date")
    amount: Decimal = Field(default=Decimal("0"), ge=0, description="Order amount")
    source: str = Field(..., description="Income source name")
    gig: Optional[str] = Field(None, description="Gig name within the source")
    status: OrderStatus = Field(..., description="Completed, In Progress, or Cancelled")
    rating: Optional[Decimal] = Field(None, ge=0, le=5, description="Client rating 0-5")
    cancellation_reasons: List[str] = Field(default_factory=list, description="Why the order was cancelled")

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED
