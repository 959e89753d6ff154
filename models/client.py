"""
Client record as read from the `clients` table.
"""

from typing import Optional

from pydantic import Field

from models.base import BaseSchema, CalendarDate


class Client(BaseSchema):
    """
    A client of the business.

    `username` is the join key to orders. `client_since` is expected to
    precede the client's orders but the store does not enforce it.
    """

    username: str = Field(..., description="Unique client username")
    name: Optional[str] = Field(None, description="Display name")
    client_since: CalendarDate = Field(..., description="Date the client was acquired")
    is_vip: bool = Field(default=False, description="VIP flag")
    source: Optional[str] = Field(None, description="Income source the client came from")
