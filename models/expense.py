"""
Expense record as read from the `expenses` table.
"""

from decimal import Decimal

from pydantic import Field

from models.base import BaseSchema, CalendarDate


class Expense(BaseSchema):
    """Business expense. Expenses carry no income source."""

    id: str = Field(..., description="Expense ID")
    date: CalendarDate = Field(..., description="Expense date")
    amount: Decimal = Field(default=Decimal("0"), description="Expense amount")
    category: str = Field(default="Other", description="Free-form category (Marketing, Salary, ...)")
    is_recurring: bool = Field(default=False, description="Recurring expense flag")
